from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..types import (
    Chat,
    ChatMemberUpdated,
    ChosenInlineResult,
    InlineQuery,
    Location,
    OrderInfo,
    Poll,
    PollAnswer,
    PreCheckoutQuery,
    ShippingAddress,
    ShippingQuery,
    Update,
    User,
)
from .base import Context

if TYPE_CHECKING:
    from ..client import Bot


@dataclass(frozen=True, kw_only=True)
class InlineContext(Context):
    id: str
    from_: User
    query: str
    offset: str
    chat_type: str | None = None
    location: Location | None = None

    @classmethod
    def build(cls, bot: Bot, update_id: int, query: InlineQuery) -> InlineContext:
        return cls(
            bot=bot,
            update_id=update_id,
            id=query.id,
            from_=query.from_,
            query=query.query,
            offset=query.offset,
            chat_type=query.chat_type,
            location=query.location,
        )

    async def answer(self, results: list[Any], **kwargs: Any) -> bool:
        return await self.bot.answer_inline_query(self.id, results, **kwargs)


@dataclass(frozen=True, kw_only=True)
class ChosenInlineContext(Context):
    result_id: str
    from_: User
    query: str
    location: Location | None = None
    inline_message_id: str | None = None

    @classmethod
    def build(
        cls, bot: Bot, update_id: int, result: ChosenInlineResult
    ) -> ChosenInlineContext:
        return cls(
            bot=bot,
            update_id=update_id,
            result_id=result.result_id,
            from_=result.from_,
            query=result.query,
            location=result.location,
            inline_message_id=result.inline_message_id,
        )


@dataclass(frozen=True, kw_only=True)
class ShippingContext(Context):
    id: str
    from_: User
    invoice_payload: str
    shipping_address: ShippingAddress | None = None

    @classmethod
    def build(
        cls, bot: Bot, update_id: int, query: ShippingQuery
    ) -> ShippingContext:
        return cls(
            bot=bot,
            update_id=update_id,
            id=query.id,
            from_=query.from_,
            invoice_payload=query.invoice_payload,
            shipping_address=query.shipping_address,
        )

    async def ok(self, shipping_options: list[Any]) -> bool:
        return await self.bot.answer_shipping_query(
            self.id, True, shipping_options=shipping_options
        )

    async def err(self, error_message: str) -> bool:
        return await self.bot.answer_shipping_query(
            self.id, False, error_message=error_message
        )


@dataclass(frozen=True, kw_only=True)
class PreCheckoutContext(Context):
    id: str
    from_: User
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: str | None = None
    order_info: OrderInfo | None = None

    @classmethod
    def build(
        cls, bot: Bot, update_id: int, query: PreCheckoutQuery
    ) -> PreCheckoutContext:
        return cls(
            bot=bot,
            update_id=update_id,
            id=query.id,
            from_=query.from_,
            currency=query.currency,
            total_amount=query.total_amount,
            invoice_payload=query.invoice_payload,
            shipping_option_id=query.shipping_option_id,
            order_info=query.order_info,
        )

    async def ok(self) -> bool:
        return await self.bot.answer_pre_checkout_query(self.id, True)

    async def err(self, error_message: str) -> bool:
        return await self.bot.answer_pre_checkout_query(
            self.id, False, error_message=error_message
        )


@dataclass(frozen=True, kw_only=True)
class UpdatedPollContext(Context):
    poll: Poll


@dataclass(frozen=True, kw_only=True)
class PollAnswerContext(Context):
    answer: PollAnswer


@dataclass(frozen=True, kw_only=True)
class ChatMemberContext(Context):
    chat: Chat
    from_: User
    update: ChatMemberUpdated


@dataclass(frozen=True, kw_only=True)
class MyChatMemberContext(ChatMemberContext):
    pass


@dataclass(frozen=True, kw_only=True)
class UpdateContext(Context):
    """Passed to `before_update` and `after_update` hooks."""


@dataclass(frozen=True, kw_only=True)
class UnhandledContext(Context):
    update: Update
