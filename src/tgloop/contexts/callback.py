from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..types import CallbackQuery, Message, User
from .base import Context

if TYPE_CHECKING:
    from ..client import Bot


@dataclass(frozen=True, kw_only=True)
class CallbackContext(Context):
    """Shared shape of every callback query context."""

    id: str
    from_: User
    chat_instance: str
    query: CallbackQuery

    async def answer(self, **kwargs: Any) -> bool:
        return await self.bot.answer_callback_query(self.id, **kwargs)

    async def ignore(self) -> bool:
        return await self.answer()

    async def notify(self, text: str) -> bool:
        return await self.answer(text=text)

    async def alert(self, text: str) -> bool:
        return await self.answer(text=text, show_alert=True)

    async def open_url(self, url: str) -> bool:
        return await self.answer(url=url)

    @staticmethod
    def callback_fields(
        bot: Bot, update_id: int, query: CallbackQuery
    ) -> dict[str, Any]:
        return {
            "bot": bot,
            "update_id": update_id,
            "id": query.id,
            "from_": query.from_,
            "chat_instance": query.chat_instance,
            "query": query,
        }


@dataclass(frozen=True, kw_only=True)
class MessageCallbackContext(CallbackContext):
    """Callback from a button attached to a message the bot sent."""

    message: Message

    async def edit_text(self, text: str, **kwargs: Any) -> Message | bool:
        return await self.bot.edit_message_text(
            text,
            chat_id=self.message.chat.id,
            message_id=self.message.message_id,
            **kwargs,
        )

    async def edit_reply_markup(self, reply_markup: Any) -> Message | bool:
        return await self.bot.edit_message_reply_markup(
            chat_id=self.message.chat.id,
            message_id=self.message.message_id,
            reply_markup=reply_markup,
        )


@dataclass(frozen=True, kw_only=True)
class InlineCallbackContext(CallbackContext):
    """Callback from a button attached to an inline-mode message."""

    inline_message_id: str

    async def edit_text(self, text: str, **kwargs: Any) -> Message | bool:
        return await self.bot.edit_message_text(
            text, inline_message_id=self.inline_message_id, **kwargs
        )

    async def edit_reply_markup(self, reply_markup: Any) -> Message | bool:
        return await self.bot.edit_message_reply_markup(
            inline_message_id=self.inline_message_id, reply_markup=reply_markup
        )


@dataclass(frozen=True, kw_only=True)
class MessageDataCallbackContext(MessageCallbackContext):
    data: str


@dataclass(frozen=True, kw_only=True)
class InlineDataCallbackContext(InlineCallbackContext):
    data: str


@dataclass(frozen=True, kw_only=True)
class MessageGameCallbackContext(MessageCallbackContext):
    game_short_name: str


@dataclass(frozen=True, kw_only=True)
class InlineGameCallbackContext(InlineCallbackContext):
    game_short_name: str
