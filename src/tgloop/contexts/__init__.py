from .base import Context, EditedContext, ForwardOrigin, MediaContext, MessageContext
from .callback import (
    CallbackContext,
    InlineCallbackContext,
    InlineDataCallbackContext,
    InlineGameCallbackContext,
    MessageCallbackContext,
    MessageDataCallbackContext,
    MessageGameCallbackContext,
)
from .command import CommandContext
from .message import (
    AnimationContext,
    AudioContext,
    ConnectedWebsiteContext,
    ContactContext,
    CreatedGroupContext,
    DeletedChatPhotoContext,
    DiceContext,
    DocumentContext,
    EditedAnimationContext,
    EditedAudioContext,
    EditedDocumentContext,
    EditedLocationContext,
    EditedPhotoContext,
    EditedTextContext,
    EditedVideoContext,
    GameContext,
    InvoiceContext,
    LeftMemberContext,
    LocationContext,
    MigrationContext,
    NewChatPhotoContext,
    NewChatTitleContext,
    NewMembersContext,
    PassportContext,
    PaymentContext,
    PhotoContext,
    PinnedMessageContext,
    PollContext,
    ProximityAlertContext,
    StickerContext,
    TextContext,
    VenueContext,
    VideoContext,
    VideoNoteContext,
    VoiceContext,
)
from .queries import (
    ChatMemberContext,
    ChosenInlineContext,
    InlineContext,
    MyChatMemberContext,
    PollAnswerContext,
    PreCheckoutContext,
    ShippingContext,
    UnhandledContext,
    UpdateContext,
    UpdatedPollContext,
)

__all__ = [
    "AnimationContext",
    "AudioContext",
    "CallbackContext",
    "ChatMemberContext",
    "ChosenInlineContext",
    "CommandContext",
    "ConnectedWebsiteContext",
    "ContactContext",
    "Context",
    "CreatedGroupContext",
    "DeletedChatPhotoContext",
    "DiceContext",
    "DocumentContext",
    "EditedAnimationContext",
    "EditedAudioContext",
    "EditedContext",
    "EditedDocumentContext",
    "EditedLocationContext",
    "EditedPhotoContext",
    "EditedTextContext",
    "EditedVideoContext",
    "ForwardOrigin",
    "GameContext",
    "InlineCallbackContext",
    "InlineContext",
    "InlineDataCallbackContext",
    "InlineGameCallbackContext",
    "InvoiceContext",
    "LeftMemberContext",
    "LocationContext",
    "MediaContext",
    "MessageCallbackContext",
    "MessageContext",
    "MessageDataCallbackContext",
    "MessageGameCallbackContext",
    "MigrationContext",
    "MyChatMemberContext",
    "NewChatPhotoContext",
    "NewChatTitleContext",
    "NewMembersContext",
    "PassportContext",
    "PaymentContext",
    "PhotoContext",
    "PinnedMessageContext",
    "PollAnswerContext",
    "PollContext",
    "PreCheckoutContext",
    "ProximityAlertContext",
    "ShippingContext",
    "StickerContext",
    "TextContext",
    "UnhandledContext",
    "UpdateContext",
    "UpdatedPollContext",
    "VenueContext",
    "VideoContext",
    "VideoNoteContext",
    "VoiceContext",
]
