from __future__ import annotations

import enum
from typing import Any

import msgspec

__all__ = [
    "Animation",
    "Audio",
    "BotCommand",
    "CallbackQuery",
    "Chat",
    "ChatMember",
    "ChatMemberUpdated",
    "ChatType",
    "ChosenInlineResult",
    "Contact",
    "Dice",
    "Document",
    "File",
    "Game",
    "InlineQuery",
    "Invoice",
    "Location",
    "Message",
    "MessageEntity",
    "MessageOrigin",
    "OrderInfo",
    "PhotoSize",
    "Poll",
    "PollAnswer",
    "PollOption",
    "PreCheckoutQuery",
    "ProximityAlertTriggered",
    "ShippingAddress",
    "ShippingQuery",
    "Sticker",
    "SuccessfulPayment",
    "Update",
    "UpdateKind",
    "User",
    "Venue",
    "Video",
    "VideoNote",
    "Voice",
    "WebhookInfo",
    "convert_update",
    "decode_raw_update",
]


class UpdateKind(enum.StrEnum):
    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"
    POLL = "poll"
    POLL_ANSWER = "poll_answer"
    MY_CHAT_MEMBER = "my_chat_member"
    CHAT_MEMBER = "chat_member"


class ChatType(enum.StrEnum):
    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


class User(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None


class Chat(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    type: str
    title: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @property
    def is_private(self) -> bool:
        return self.type == ChatType.PRIVATE

    @property
    def is_group(self) -> bool:
        return self.type == ChatType.GROUP

    @property
    def is_supergroup(self) -> bool:
        return self.type == ChatType.SUPERGROUP

    @property
    def is_channel(self) -> bool:
        return self.type == ChatType.CHANNEL


class MessageEntity(msgspec.Struct, forbid_unknown_fields=False):
    type: str
    offset: int
    length: int
    url: str | None = None
    user: User | None = None
    language: str | None = None


class PhotoSize(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    width: int = 0
    height: int = 0
    file_size: int | None = None


class Animation(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    width: int = 0
    height: int = 0
    duration: int = 0
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Audio(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    duration: int = 0
    performer: str | None = None
    title: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Document(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Video(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    width: int = 0
    height: int = 0
    duration: int = 0
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class VideoNote(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    length: int = 0
    duration: int = 0
    file_size: int | None = None


class Voice(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    duration: int = 0
    mime_type: str | None = None
    file_size: int | None = None


class Sticker(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    width: int = 0
    height: int = 0
    is_animated: bool = False
    emoji: str | None = None
    set_name: str | None = None
    file_size: int | None = None


class Contact(msgspec.Struct, forbid_unknown_fields=False):
    phone_number: str
    first_name: str
    last_name: str | None = None
    user_id: int | None = None
    vcard: str | None = None


class Dice(msgspec.Struct, forbid_unknown_fields=False):
    emoji: str
    value: int


class Location(msgspec.Struct, forbid_unknown_fields=False):
    longitude: float
    latitude: float
    horizontal_accuracy: float | None = None
    live_period: int | None = None
    heading: int | None = None


class Venue(msgspec.Struct, forbid_unknown_fields=False):
    location: Location
    title: str
    address: str
    foursquare_id: str | None = None


class PollOption(msgspec.Struct, forbid_unknown_fields=False):
    text: str
    voter_count: int = 0


class Poll(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    question: str
    options: list[PollOption] = msgspec.field(default_factory=list)
    total_voter_count: int = 0
    is_closed: bool = False
    is_anonymous: bool = True
    type: str = "regular"
    allows_multiple_answers: bool = False


class PollAnswer(msgspec.Struct, forbid_unknown_fields=False):
    poll_id: str
    user: User | None = None
    voter_chat: Chat | None = None
    option_ids: list[int] = msgspec.field(default_factory=list)


class Game(msgspec.Struct, forbid_unknown_fields=False):
    title: str
    description: str
    photo: list[PhotoSize] = msgspec.field(default_factory=list)
    text: str | None = None


class Invoice(msgspec.Struct, forbid_unknown_fields=False):
    title: str
    description: str
    start_parameter: str
    currency: str
    total_amount: int


class ShippingAddress(msgspec.Struct, forbid_unknown_fields=False):
    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str


class OrderInfo(msgspec.Struct, forbid_unknown_fields=False):
    name: str | None = None
    phone_number: str | None = None
    email: str | None = None
    shipping_address: ShippingAddress | None = None


class SuccessfulPayment(msgspec.Struct, forbid_unknown_fields=False):
    currency: str
    total_amount: int
    invoice_payload: str
    telegram_payment_charge_id: str
    provider_payment_charge_id: str
    shipping_option_id: str | None = None
    order_info: OrderInfo | None = None


class ProximityAlertTriggered(msgspec.Struct, forbid_unknown_fields=False):
    traveler: User
    watcher: User
    distance: int


class MessageOrigin(msgspec.Struct, forbid_unknown_fields=False):
    """Where a forwarded message came from.

    `type` is one of `user`, `hidden_user`, `chat` or `channel`; only the
    fields of that variant are set.
    """

    type: str
    date: int
    sender_user: User | None = None
    sender_user_name: str | None = None
    sender_chat: Chat | None = None
    chat: Chat | None = None
    message_id: int | None = None
    author_signature: str | None = None


class Message(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat
    date: int = 0
    from_: User | None = msgspec.field(default=None, name="from")
    sender_chat: Chat | None = None
    forward_origin: MessageOrigin | None = None
    forward_from: User | None = None
    forward_from_chat: Chat | None = None
    forward_from_message_id: int | None = None
    forward_signature: str | None = None
    forward_sender_name: str | None = None
    forward_date: int | None = None
    reply_to_message: Message | None = None
    via_bot: User | None = None
    edit_date: int | None = None
    media_group_id: str | None = None
    author_signature: str | None = None
    text: str | None = None
    entities: list[MessageEntity] | None = None
    caption: str | None = None
    caption_entities: list[MessageEntity] | None = None
    animation: Animation | None = None
    audio: Audio | None = None
    document: Document | None = None
    photo: list[PhotoSize] | None = None
    sticker: Sticker | None = None
    video: Video | None = None
    video_note: VideoNote | None = None
    voice: Voice | None = None
    contact: Contact | None = None
    dice: Dice | None = None
    game: Game | None = None
    poll: Poll | None = None
    venue: Venue | None = None
    location: Location | None = None
    new_chat_members: list[User] | None = None
    left_chat_member: User | None = None
    new_chat_title: str | None = None
    new_chat_photo: list[PhotoSize] | None = None
    delete_chat_photo: bool = False
    group_chat_created: bool = False
    supergroup_chat_created: bool = False
    channel_chat_created: bool = False
    migrate_to_chat_id: int | None = None
    migrate_from_chat_id: int | None = None
    pinned_message: Message | None = None
    invoice: Invoice | None = None
    successful_payment: SuccessfulPayment | None = None
    connected_website: str | None = None
    passport_data: dict[str, Any] | None = None
    proximity_alert_triggered: ProximityAlertTriggered | None = None
    reply_markup: dict[str, Any] | None = None

    @property
    def is_forwarded(self) -> bool:
        return (
            self.forward_origin is not None
            or self.forward_date is not None
            or self.forward_from is not None
            or self.forward_from_chat is not None
            or self.forward_sender_name is not None
        )


class CallbackQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    chat_instance: str = ""
    message: Message | None = None
    inline_message_id: str | None = None
    data: str | None = None
    game_short_name: str | None = None


class InlineQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    query: str = ""
    offset: str = ""
    chat_type: str | None = None
    location: Location | None = None


class ChosenInlineResult(msgspec.Struct, forbid_unknown_fields=False):
    result_id: str
    from_: User = msgspec.field(name="from")
    query: str = ""
    location: Location | None = None
    inline_message_id: str | None = None


class ShippingQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    invoice_payload: str = ""
    shipping_address: ShippingAddress | None = None


class PreCheckoutQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User = msgspec.field(name="from")
    currency: str = ""
    total_amount: int = 0
    invoice_payload: str = ""
    shipping_option_id: str | None = None
    order_info: OrderInfo | None = None


class ChatMember(msgspec.Struct, forbid_unknown_fields=False):
    status: str
    user: User


class ChatMemberUpdated(msgspec.Struct, forbid_unknown_fields=False):
    chat: Chat
    from_: User = msgspec.field(name="from")
    date: int = 0
    old_chat_member: ChatMember | None = None
    new_chat_member: ChatMember | None = None
    invite_link: dict[str, Any] | None = None


class File(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_unique_id: str = ""
    file_size: int | None = None
    file_path: str | None = None


class BotCommand(msgspec.Struct, forbid_unknown_fields=False):
    command: str
    description: str


class WebhookInfo(msgspec.Struct, forbid_unknown_fields=False):
    url: str
    has_custom_certificate: bool = False
    pending_update_count: int = 0
    ip_address: str | None = None
    last_error_date: int | None = None
    last_error_message: str | None = None
    max_connections: int | None = None
    allowed_updates: list[str] | None = None


class Update(msgspec.Struct, forbid_unknown_fields=False):
    update_id: int
    message: Message | None = None
    edited_message: Message | None = None
    channel_post: Message | None = None
    edited_channel_post: Message | None = None
    inline_query: InlineQuery | None = None
    chosen_inline_result: ChosenInlineResult | None = None
    callback_query: CallbackQuery | None = None
    shipping_query: ShippingQuery | None = None
    pre_checkout_query: PreCheckoutQuery | None = None
    poll: Poll | None = None
    poll_answer: PollAnswer | None = None
    my_chat_member: ChatMemberUpdated | None = None
    chat_member: ChatMemberUpdated | None = None

    @property
    def kind(self) -> UpdateKind | None:
        for kind in UpdateKind:
            if getattr(self, kind.value) is not None:
                return kind
        return None


_RAW_UPDATE_DECODER = msgspec.json.Decoder(dict[str, Any])


def decode_raw_update(data: bytes | str) -> dict[str, Any]:
    """Decode one JSON update without validating its payload."""
    return _RAW_UPDATE_DECODER.decode(data)


def convert_update(raw: dict[str, Any]) -> Update:
    """Validate one raw update; raises `msgspec.ValidationError` on a mismatch."""
    return msgspec.convert(raw, type=Update)
