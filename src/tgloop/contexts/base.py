from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..types import Chat, Message, MessageEntity, User

if TYPE_CHECKING:
    from ..client import Bot, ChatId, InputFile


@dataclass(frozen=True, slots=True)
class ForwardOrigin:
    date: int
    from_: User | None = None
    from_chat: Chat | None = None
    from_message_id: int | None = None
    signature: str | None = None
    sender_name: str | None = None

    @classmethod
    def from_message(cls, message: Message) -> ForwardOrigin | None:
        origin = message.forward_origin
        if origin is not None:
            return cls(
                date=origin.date,
                from_=origin.sender_user,
                from_chat=origin.chat or origin.sender_chat,
                from_message_id=origin.message_id,
                signature=origin.author_signature,
                sender_name=origin.sender_user_name,
            )
        if not message.is_forwarded:
            return None
        # Fields sent by Bot API servers older than 7.0.
        return cls(
            date=message.forward_date or 0,
            from_=message.forward_from,
            from_chat=message.forward_from_chat,
            from_message_id=message.forward_from_message_id,
            signature=message.forward_signature,
            sender_name=message.forward_sender_name,
        )


@dataclass(frozen=True, kw_only=True)
class Context:
    """Every context carries the bot handle and the id of its update."""

    bot: Bot
    update_id: int


@dataclass(frozen=True, kw_only=True)
class MessageContext(Context):
    """Capabilities shared by every context built from a message.

    Follow-up calls reuse the chat and message ids of this message.
    """

    message_id: int
    chat: Chat
    date: int
    from_: User | None = None
    sender_chat: Chat | None = None
    reply_to: Message | None = None
    forward: ForwardOrigin | None = None
    via_bot: User | None = None
    author_signature: str | None = None
    reply_markup: dict[str, Any] | None = None
    message: Message

    @staticmethod
    def message_fields(
        bot: Bot, update_id: int, message: Message
    ) -> dict[str, Any]:
        return {
            "bot": bot,
            "update_id": update_id,
            "message_id": message.message_id,
            "chat": message.chat,
            "date": message.date,
            "from_": message.from_,
            "sender_chat": message.sender_chat,
            "reply_to": message.reply_to_message,
            "forward": ForwardOrigin.from_message(message),
            "via_bot": message.via_bot,
            "author_signature": message.author_signature,
            "reply_markup": message.reply_markup,
            "message": message,
        }

    async def send_message(self, text: str, **kwargs: Any) -> Message:
        return await self.bot.send_message(self.chat.id, text, **kwargs)

    async def send_message_in_reply(self, text: str, **kwargs: Any) -> Message:
        return await self.bot.send_message(
            self.chat.id, text, reply_to_message_id=self.message_id, **kwargs
        )

    async def send_photo(self, photo: str | InputFile, **kwargs: Any) -> Message:
        return await self.bot.send_photo(self.chat.id, photo, **kwargs)

    async def send_photo_in_reply(
        self, photo: str | InputFile, **kwargs: Any
    ) -> Message:
        return await self.bot.send_photo(
            self.chat.id, photo, reply_to_message_id=self.message_id, **kwargs
        )

    async def send_document(
        self, document: str | InputFile, **kwargs: Any
    ) -> Message:
        return await self.bot.send_document(self.chat.id, document, **kwargs)

    async def send_document_in_reply(
        self, document: str | InputFile, **kwargs: Any
    ) -> Message:
        return await self.bot.send_document(
            self.chat.id, document, reply_to_message_id=self.message_id, **kwargs
        )

    async def send_dice(self, emoji: str | None = None) -> Message:
        return await self.bot.send_dice(self.chat.id, emoji=emoji)

    async def send_dice_in_reply(self, emoji: str | None = None) -> Message:
        return await self.bot.send_dice(
            self.chat.id, emoji=emoji, reply_to_message_id=self.message_id
        )

    async def send_location(self, latitude: float, longitude: float) -> Message:
        return await self.bot.send_location(self.chat.id, latitude, longitude)

    async def send_chat_action(self, action: str) -> bool:
        return await self.bot.send_chat_action(self.chat.id, action)

    async def forward_to(self, chat_id: ChatId, **kwargs: Any) -> Message:
        return await self.bot.forward_message(
            chat_id, self.chat.id, self.message_id, **kwargs
        )

    async def forward_here(
        self, from_chat_id: ChatId, message_id: int, **kwargs: Any
    ) -> Message:
        return await self.bot.forward_message(
            self.chat.id, from_chat_id, message_id, **kwargs
        )

    async def copy_to(self, chat_id: ChatId, **kwargs: Any) -> int:
        return await self.bot.copy_message(
            chat_id, self.chat.id, self.message_id, **kwargs
        )

    async def copy_here(
        self, from_chat_id: ChatId, message_id: int, **kwargs: Any
    ) -> int:
        return await self.bot.copy_message(
            self.chat.id, from_chat_id, message_id, **kwargs
        )

    async def edit_message_text(
        self, message_id: int, text: str, **kwargs: Any
    ) -> Message | bool:
        return await self.bot.edit_message_text(
            text, chat_id=self.chat.id, message_id=message_id, **kwargs
        )

    async def delete_message(self, message_id: int) -> bool:
        return await self.bot.delete_message(self.chat.id, message_id)

    async def delete_this_message(self) -> bool:
        return await self.bot.delete_message(self.chat.id, self.message_id)

    async def pin_chat_message(self, message_id: int, **kwargs: Any) -> bool:
        return await self.bot.pin_chat_message(self.chat.id, message_id, **kwargs)

    async def pin_this_message(self, **kwargs: Any) -> bool:
        return await self.bot.pin_chat_message(self.chat.id, self.message_id, **kwargs)

    async def unpin_this_message(self) -> bool:
        return await self.bot.unpin_chat_message(self.chat.id, self.message_id)

    async def get_chat(self) -> Chat:
        return await self.bot.get_chat(self.chat.id)

    async def leave_chat(self) -> bool:
        return await self.bot.leave_chat(self.chat.id)

    async def download_file(self, file_id: str) -> bytes:
        file = await self.bot.get_file(file_id)
        return await self.bot.download_file(file)


@dataclass(frozen=True, kw_only=True)
class MediaContext(MessageContext):
    caption: str | None = None
    caption_entities: list[MessageEntity] | None = None
    media_group_id: str | None = None

    @staticmethod
    def media_fields(message: Message) -> dict[str, Any]:
        return {
            "caption": message.caption,
            "caption_entities": message.caption_entities,
            "media_group_id": message.media_group_id,
        }


@dataclass(frozen=True, kw_only=True)
class EditedContext(MessageContext):
    edit_date: int
