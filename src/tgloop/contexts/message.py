from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..types import (
    Animation,
    Audio,
    Contact,
    Dice,
    Document,
    Game,
    Invoice,
    Location,
    Message,
    MessageEntity,
    PhotoSize,
    Poll,
    ProximityAlertTriggered,
    Sticker,
    SuccessfulPayment,
    User,
    Venue,
    Video,
    VideoNote,
    Voice,
)
from .base import EditedContext, MediaContext, MessageContext


@dataclass(frozen=True, kw_only=True)
class TextContext(MessageContext):
    text: str
    entities: list[MessageEntity] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class AnimationContext(MediaContext):
    animation: Animation


@dataclass(frozen=True, kw_only=True)
class AudioContext(MediaContext):
    audio: Audio


@dataclass(frozen=True, kw_only=True)
class DocumentContext(MediaContext):
    document: Document

    async def download(self) -> bytes:
        return await self.download_file(self.document.file_id)


@dataclass(frozen=True, kw_only=True)
class PhotoContext(MediaContext):
    photo: list[PhotoSize]


@dataclass(frozen=True, kw_only=True)
class VideoContext(MediaContext):
    video: Video


@dataclass(frozen=True, kw_only=True)
class VoiceContext(MediaContext):
    voice: Voice


@dataclass(frozen=True, kw_only=True)
class VideoNoteContext(MessageContext):
    video_note: VideoNote


@dataclass(frozen=True, kw_only=True)
class StickerContext(MessageContext):
    sticker: Sticker


@dataclass(frozen=True, kw_only=True)
class ContactContext(MessageContext):
    contact: Contact


@dataclass(frozen=True, kw_only=True)
class LocationContext(MessageContext):
    location: Location


@dataclass(frozen=True, kw_only=True)
class VenueContext(MessageContext):
    venue: Venue


@dataclass(frozen=True, kw_only=True)
class DiceContext(MessageContext):
    dice: Dice


@dataclass(frozen=True, kw_only=True)
class PollContext(MessageContext):
    poll: Poll


@dataclass(frozen=True, kw_only=True)
class GameContext(MessageContext):
    game: Game


@dataclass(frozen=True, kw_only=True)
class InvoiceContext(MessageContext):
    invoice: Invoice


@dataclass(frozen=True, kw_only=True)
class PaymentContext(MessageContext):
    payment: SuccessfulPayment


@dataclass(frozen=True, kw_only=True)
class PassportContext(MessageContext):
    passport_data: dict[str, Any]


@dataclass(frozen=True, kw_only=True)
class NewMembersContext(MessageContext):
    members: list[User]


@dataclass(frozen=True, kw_only=True)
class LeftMemberContext(MessageContext):
    member: User


@dataclass(frozen=True, kw_only=True)
class NewChatTitleContext(MessageContext):
    title: str


@dataclass(frozen=True, kw_only=True)
class NewChatPhotoContext(MessageContext):
    photo: list[PhotoSize]


@dataclass(frozen=True, kw_only=True)
class DeletedChatPhotoContext(MessageContext):
    pass


@dataclass(frozen=True, kw_only=True)
class CreatedGroupContext(MessageContext):
    pass


@dataclass(frozen=True, kw_only=True)
class MigrationContext(MessageContext):
    old_chat_id: int


@dataclass(frozen=True, kw_only=True)
class PinnedMessageContext(MessageContext):
    pinned: Message


@dataclass(frozen=True, kw_only=True)
class ProximityAlertContext(MessageContext):
    alert: ProximityAlertTriggered


@dataclass(frozen=True, kw_only=True)
class ConnectedWebsiteContext(MessageContext):
    website: str


@dataclass(frozen=True, kw_only=True)
class EditedTextContext(EditedContext, TextContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedAnimationContext(EditedContext, AnimationContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedAudioContext(EditedContext, AudioContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedDocumentContext(EditedContext, DocumentContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedLocationContext(EditedContext, LocationContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedPhotoContext(EditedContext, PhotoContext):
    pass


@dataclass(frozen=True, kw_only=True)
class EditedVideoContext(EditedContext, VideoContext):
    pass
