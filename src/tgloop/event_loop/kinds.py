from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any

from ..contexts import (
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
    MediaContext,
    MessageContext,
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
from ..types import Message


class HandlerKind(enum.StrEnum):
    """Handler lists owned by the event loop, one per context type."""

    TEXT = "text"
    ANIMATION = "animation"
    AUDIO = "audio"
    DOCUMENT = "document"
    PHOTO = "photo"
    VIDEO = "video"
    VOICE = "voice"
    VIDEO_NOTE = "video_note"
    STICKER = "sticker"
    CONTACT = "contact"
    LOCATION = "location"
    VENUE = "venue"
    DICE = "dice"
    POLL = "poll"
    GAME = "game"
    INVOICE = "invoice"
    PAYMENT = "payment"
    PASSPORT = "passport"
    NEW_MEMBERS = "new_members"
    LEFT_MEMBER = "left_member"
    NEW_CHAT_TITLE = "new_chat_title"
    NEW_CHAT_PHOTO = "new_chat_photo"
    DELETED_CHAT_PHOTO = "deleted_chat_photo"
    CREATED_GROUP = "created_group"
    MIGRATION = "migration"
    PINNED_MESSAGE = "pinned_message"
    PROXIMITY_ALERT = "proximity_alert"
    CONNECTED_WEBSITE = "connected_website"
    EDITED_TEXT = "edited_text"
    EDITED_ANIMATION = "edited_animation"
    EDITED_AUDIO = "edited_audio"
    EDITED_DOCUMENT = "edited_document"
    EDITED_LOCATION = "edited_location"
    EDITED_PHOTO = "edited_photo"
    EDITED_VIDEO = "edited_video"
    MESSAGE_DATA_CALLBACK = "message_data_callback"
    INLINE_DATA_CALLBACK = "inline_data_callback"
    MESSAGE_GAME_CALLBACK = "message_game_callback"
    INLINE_GAME_CALLBACK = "inline_game_callback"
    INLINE = "inline"
    CHOSEN_INLINE = "chosen_inline"
    SHIPPING = "shipping"
    PRE_CHECKOUT = "pre_checkout"
    UPDATED_POLL = "updated_poll"
    POLL_ANSWER = "poll_answer"
    CHAT_MEMBER = "chat_member"
    MY_CHAT_MEMBER = "my_chat_member"


Builder = Callable[[dict[str, Any], Message], MessageContext]


def _media(cls: type[MediaContext], attr: str) -> Builder:
    def build(base: dict[str, Any], message: Message) -> MessageContext:
        return cls(
            **base,
            **MediaContext.media_fields(message),
            **{attr: getattr(message, attr)},
        )

    return build


def _plain(cls: type[MessageContext], attr: str, source: str | None = None) -> Builder:
    def build(base: dict[str, Any], message: Message) -> MessageContext:
        return cls(**base, **{attr: getattr(message, source or attr)})

    return build


def _bare(cls: type[MessageContext]) -> Builder:
    def build(base: dict[str, Any], message: Message) -> MessageContext:
        return cls(**base)

    return build


def _text(cls: type[TextContext]) -> Builder:
    def build(base: dict[str, Any], message: Message) -> MessageContext:
        return cls(**base, text=message.text or "", entities=message.entities or [])

    return build


# Order matters: animations also carry `document`, venues also carry `location`.
_MESSAGE_KINDS: list[tuple[Callable[[Message], bool], HandlerKind, Builder]] = [
    (lambda m: m.text is not None, HandlerKind.TEXT, _text(TextContext)),
    (
        lambda m: m.animation is not None,
        HandlerKind.ANIMATION,
        _media(AnimationContext, "animation"),
    ),
    (lambda m: m.audio is not None, HandlerKind.AUDIO, _media(AudioContext, "audio")),
    (
        lambda m: m.document is not None,
        HandlerKind.DOCUMENT,
        _media(DocumentContext, "document"),
    ),
    (lambda m: m.photo is not None, HandlerKind.PHOTO, _media(PhotoContext, "photo")),
    (lambda m: m.video is not None, HandlerKind.VIDEO, _media(VideoContext, "video")),
    (lambda m: m.voice is not None, HandlerKind.VOICE, _media(VoiceContext, "voice")),
    (
        lambda m: m.video_note is not None,
        HandlerKind.VIDEO_NOTE,
        _plain(VideoNoteContext, "video_note"),
    ),
    (
        lambda m: m.sticker is not None,
        HandlerKind.STICKER,
        _plain(StickerContext, "sticker"),
    ),
    (
        lambda m: m.contact is not None,
        HandlerKind.CONTACT,
        _plain(ContactContext, "contact"),
    ),
    (lambda m: m.venue is not None, HandlerKind.VENUE, _plain(VenueContext, "venue")),
    (
        lambda m: m.location is not None,
        HandlerKind.LOCATION,
        _plain(LocationContext, "location"),
    ),
    (lambda m: m.dice is not None, HandlerKind.DICE, _plain(DiceContext, "dice")),
    (lambda m: m.poll is not None, HandlerKind.POLL, _plain(PollContext, "poll")),
    (lambda m: m.game is not None, HandlerKind.GAME, _plain(GameContext, "game")),
    (
        lambda m: m.invoice is not None,
        HandlerKind.INVOICE,
        _plain(InvoiceContext, "invoice"),
    ),
    (
        lambda m: m.successful_payment is not None,
        HandlerKind.PAYMENT,
        _plain(PaymentContext, "payment", "successful_payment"),
    ),
    (
        lambda m: m.passport_data is not None,
        HandlerKind.PASSPORT,
        _plain(PassportContext, "passport_data"),
    ),
    (
        lambda m: m.new_chat_members is not None,
        HandlerKind.NEW_MEMBERS,
        _plain(NewMembersContext, "members", "new_chat_members"),
    ),
    (
        lambda m: m.left_chat_member is not None,
        HandlerKind.LEFT_MEMBER,
        _plain(LeftMemberContext, "member", "left_chat_member"),
    ),
    (
        lambda m: m.new_chat_title is not None,
        HandlerKind.NEW_CHAT_TITLE,
        _plain(NewChatTitleContext, "title", "new_chat_title"),
    ),
    (
        lambda m: m.new_chat_photo is not None,
        HandlerKind.NEW_CHAT_PHOTO,
        _plain(NewChatPhotoContext, "photo", "new_chat_photo"),
    ),
    (
        lambda m: m.delete_chat_photo,
        HandlerKind.DELETED_CHAT_PHOTO,
        _bare(DeletedChatPhotoContext),
    ),
    (
        lambda m: m.group_chat_created,
        HandlerKind.CREATED_GROUP,
        _bare(CreatedGroupContext),
    ),
    (
        lambda m: m.migrate_from_chat_id is not None,
        HandlerKind.MIGRATION,
        _plain(MigrationContext, "old_chat_id", "migrate_from_chat_id"),
    ),
    (
        lambda m: m.pinned_message is not None,
        HandlerKind.PINNED_MESSAGE,
        _plain(PinnedMessageContext, "pinned", "pinned_message"),
    ),
    (
        lambda m: m.proximity_alert_triggered is not None,
        HandlerKind.PROXIMITY_ALERT,
        _plain(ProximityAlertContext, "alert", "proximity_alert_triggered"),
    ),
    (
        lambda m: m.connected_website is not None,
        HandlerKind.CONNECTED_WEBSITE,
        _plain(ConnectedWebsiteContext, "website", "connected_website"),
    ),
]

_EDITED_KINDS: list[tuple[Callable[[Message], bool], HandlerKind, Builder]] = [
    (lambda m: m.text is not None, HandlerKind.EDITED_TEXT, _text(EditedTextContext)),
    (
        lambda m: m.animation is not None,
        HandlerKind.EDITED_ANIMATION,
        _media(EditedAnimationContext, "animation"),
    ),
    (
        lambda m: m.audio is not None,
        HandlerKind.EDITED_AUDIO,
        _media(EditedAudioContext, "audio"),
    ),
    (
        lambda m: m.document is not None,
        HandlerKind.EDITED_DOCUMENT,
        _media(EditedDocumentContext, "document"),
    ),
    (
        lambda m: m.photo is not None,
        HandlerKind.EDITED_PHOTO,
        _media(EditedPhotoContext, "photo"),
    ),
    (
        lambda m: m.video is not None,
        HandlerKind.EDITED_VIDEO,
        _media(EditedVideoContext, "video"),
    ),
    (
        lambda m: m.location is not None and m.venue is None,
        HandlerKind.EDITED_LOCATION,
        _plain(EditedLocationContext, "location"),
    ),
]


def classify_message(message: Message) -> tuple[HandlerKind, Builder] | None:
    for matches, kind, build in _MESSAGE_KINDS:
        if matches(message):
            return kind, build
    return None


def classify_edited_message(message: Message) -> tuple[HandlerKind, Builder] | None:
    for matches, kind, build in _EDITED_KINDS:
        if matches(message):
            return kind, build
    return None
