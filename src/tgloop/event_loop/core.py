from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

import anyio
from anyio.abc import TaskGroup

from ..contexts import (
    CallbackContext,
    ChatMemberContext,
    ChosenInlineContext,
    CommandContext,
    InlineContext,
    InlineDataCallbackContext,
    InlineGameCallbackContext,
    MessageContext,
    MessageDataCallbackContext,
    MessageGameCallbackContext,
    MyChatMemberContext,
    PollAnswerContext,
    PreCheckoutContext,
    ShippingContext,
    UnhandledContext,
    UpdateContext,
    UpdatedPollContext,
)
from ..logging import get_logger
from ..predicates import PredicateFn, evaluate
from ..types import BotCommand, Message, Update, UpdateKind
from .commands import parse_command
from .kinds import HandlerKind, classify_edited_message, classify_message

if TYPE_CHECKING:
    from ..client import Bot
    from ..state import StatefulEventLoop
    from .polling import Polling
    from .webhook import Webhook

logger = get_logger(__name__)

S = TypeVar("S")
HandlerFn = Callable[..., Awaitable[None]]
H = TypeVar("H", bound=HandlerFn)


@dataclass(frozen=True, slots=True)
class _Entry:
    handler: Callable[[Any], Awaitable[None]]
    predicate: Callable[[Any], Awaitable[bool]] | None
    name: str


def _on(kind: HandlerKind) -> Callable[..., Any]:
    def register(self: EventLoop, handler: H) -> H:
        return self.register(kind, handler)

    register.__name__ = kind.value
    register.__doc__ = f"Add a handler for `{kind.value}` updates."
    return register


def _on_if(kind: HandlerKind) -> Callable[..., Any]:
    def register(
        self: EventLoop, predicate: PredicateFn, handler: H | None = None
    ) -> Any:
        if handler is None:
            return partial(self.register, kind, predicate=predicate)
        return self.register(kind, handler, predicate)

    register.__name__ = f"{kind.value}_if"
    register.__doc__ = (
        f"Add a handler for `{kind.value}` updates that runs only when "
        "`predicate` holds."
    )
    return register


def _command_shortcut(name: str) -> Callable[..., Any]:
    def register(self: EventLoop, handler: H | None = None) -> Any:
        return self.command(name, handler)

    register.__name__ = name
    register.__doc__ = f"Add a handler for the `/{name}` command."
    return register


def _command_shortcut_with_description(name: str) -> Callable[..., Any]:
    def register(
        self: EventLoop, description: str, handler: H | None = None
    ) -> Any:
        return self.command_with_description(name, description, handler)

    register.__name__ = f"{name}_with_description"
    register.__doc__ = (
        f"Add a handler for the `/{name}` command and set its description."
    )
    return register


class EventLoop:
    """Registry of handlers plus the routing of updates to them.

    Handlers are registered before polling or the webhook starts. Each
    update is classified, turned into a context and handed to every
    matching handler, which runs as its own task in the caller's task group.
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot
        self._handlers: dict[HandlerKind, list[_Entry]] = {}
        self._commands: dict[str, list[_Entry]] = {}
        self._edited_commands: dict[str, list[_Entry]] = {}
        self._command_descriptions: dict[str, str] = {}
        self._before_update: list[_Entry] = []
        self._after_update: list[_Entry] = []
        self._unhandled: list[_Entry] = []
        self._username: str | None = None
        self._username_lock: anyio.Lock | None = None

    # Registration

    def _adapt_handler(self, handler: HandlerFn) -> Callable[[Any], Awaitable[None]]:
        return handler

    def _adapt_predicate(
        self, predicate: PredicateFn
    ) -> Callable[[Any], Awaitable[bool]]:
        return partial(evaluate, predicate)

    def _entry(self, handler: HandlerFn, predicate: PredicateFn | None = None) -> _Entry:
        return _Entry(
            handler=self._adapt_handler(handler),
            predicate=self._adapt_predicate(predicate) if predicate is not None else None,
            name=getattr(handler, "__qualname__", repr(handler)),
        )

    def register(
        self,
        kind: HandlerKind,
        handler: H,
        predicate: PredicateFn | None = None,
    ) -> H:
        self._handlers.setdefault(kind, []).append(self._entry(handler, predicate))
        return handler

    def command(self, name: str, handler: H | None = None) -> Any:
        """Add a handler for `/name`.

        Commands addressed as `/name@username` are only handled when the
        username matches this bot's.
        """
        if handler is None:
            return partial(self.command, name)
        self._commands.setdefault(name, []).append(self._entry(handler))
        return handler

    def commands(self, names: Iterable[str], handler: H | None = None) -> Any:
        if handler is None:
            return partial(self.commands, names)
        for name in names:
            self.command(name, handler)
        return handler

    def command_with_description(
        self, name: str, description: str, handler: H | None = None
    ) -> Any:
        if handler is None:
            return partial(self.command_with_description, name, description)
        self._command_descriptions[name] = description
        return self.command(name, handler)

    def edited_command(self, name: str, handler: H | None = None) -> Any:
        if handler is None:
            return partial(self.edited_command, name)
        self._edited_commands.setdefault(name, []).append(self._entry(handler))
        return handler

    def edited_commands(self, names: Iterable[str], handler: H | None = None) -> Any:
        if handler is None:
            return partial(self.edited_commands, names)
        for name in names:
            self.edited_command(name, handler)
        return handler

    start = _command_shortcut("start")
    help = _command_shortcut("help")
    settings = _command_shortcut("settings")
    start_with_description = _command_shortcut_with_description("start")
    help_with_description = _command_shortcut_with_description("help")
    settings_with_description = _command_shortcut_with_description("settings")

    def before_update(self, handler: H) -> H:
        """Run `handler` with an `UpdateContext` before every update is routed."""
        self._before_update.append(self._entry(handler))
        return handler

    def after_update(self, handler: H) -> H:
        self._after_update.append(self._entry(handler))
        return handler

    def unhandled(self, handler: H) -> H:
        """Receive updates that no other handler list is registered for."""
        self._unhandled.append(self._entry(handler))
        return handler

    text = _on(HandlerKind.TEXT)
    text_if = _on_if(HandlerKind.TEXT)
    animation = _on(HandlerKind.ANIMATION)
    animation_if = _on_if(HandlerKind.ANIMATION)
    audio = _on(HandlerKind.AUDIO)
    audio_if = _on_if(HandlerKind.AUDIO)
    document = _on(HandlerKind.DOCUMENT)
    document_if = _on_if(HandlerKind.DOCUMENT)
    photo = _on(HandlerKind.PHOTO)
    photo_if = _on_if(HandlerKind.PHOTO)
    video = _on(HandlerKind.VIDEO)
    video_if = _on_if(HandlerKind.VIDEO)
    voice = _on(HandlerKind.VOICE)
    voice_if = _on_if(HandlerKind.VOICE)
    video_note = _on(HandlerKind.VIDEO_NOTE)
    video_note_if = _on_if(HandlerKind.VIDEO_NOTE)
    sticker = _on(HandlerKind.STICKER)
    sticker_if = _on_if(HandlerKind.STICKER)
    contact = _on(HandlerKind.CONTACT)
    contact_if = _on_if(HandlerKind.CONTACT)
    location = _on(HandlerKind.LOCATION)
    location_if = _on_if(HandlerKind.LOCATION)
    venue = _on(HandlerKind.VENUE)
    venue_if = _on_if(HandlerKind.VENUE)
    dice = _on(HandlerKind.DICE)
    dice_if = _on_if(HandlerKind.DICE)
    poll = _on(HandlerKind.POLL)
    poll_if = _on_if(HandlerKind.POLL)
    game = _on(HandlerKind.GAME)
    game_if = _on_if(HandlerKind.GAME)
    invoice = _on(HandlerKind.INVOICE)
    invoice_if = _on_if(HandlerKind.INVOICE)
    payment = _on(HandlerKind.PAYMENT)
    payment_if = _on_if(HandlerKind.PAYMENT)
    passport = _on(HandlerKind.PASSPORT)
    passport_if = _on_if(HandlerKind.PASSPORT)
    new_members = _on(HandlerKind.NEW_MEMBERS)
    new_members_if = _on_if(HandlerKind.NEW_MEMBERS)
    left_member = _on(HandlerKind.LEFT_MEMBER)
    left_member_if = _on_if(HandlerKind.LEFT_MEMBER)
    new_chat_title = _on(HandlerKind.NEW_CHAT_TITLE)
    new_chat_title_if = _on_if(HandlerKind.NEW_CHAT_TITLE)
    new_chat_photo = _on(HandlerKind.NEW_CHAT_PHOTO)
    new_chat_photo_if = _on_if(HandlerKind.NEW_CHAT_PHOTO)
    deleted_chat_photo = _on(HandlerKind.DELETED_CHAT_PHOTO)
    deleted_chat_photo_if = _on_if(HandlerKind.DELETED_CHAT_PHOTO)
    created_group = _on(HandlerKind.CREATED_GROUP)
    created_group_if = _on_if(HandlerKind.CREATED_GROUP)
    migration = _on(HandlerKind.MIGRATION)
    migration_if = _on_if(HandlerKind.MIGRATION)
    pinned_message = _on(HandlerKind.PINNED_MESSAGE)
    pinned_message_if = _on_if(HandlerKind.PINNED_MESSAGE)
    proximity_alert = _on(HandlerKind.PROXIMITY_ALERT)
    proximity_alert_if = _on_if(HandlerKind.PROXIMITY_ALERT)
    connected_website = _on(HandlerKind.CONNECTED_WEBSITE)
    connected_website_if = _on_if(HandlerKind.CONNECTED_WEBSITE)
    edited_text = _on(HandlerKind.EDITED_TEXT)
    edited_text_if = _on_if(HandlerKind.EDITED_TEXT)
    edited_animation = _on(HandlerKind.EDITED_ANIMATION)
    edited_animation_if = _on_if(HandlerKind.EDITED_ANIMATION)
    edited_audio = _on(HandlerKind.EDITED_AUDIO)
    edited_audio_if = _on_if(HandlerKind.EDITED_AUDIO)
    edited_document = _on(HandlerKind.EDITED_DOCUMENT)
    edited_document_if = _on_if(HandlerKind.EDITED_DOCUMENT)
    edited_location = _on(HandlerKind.EDITED_LOCATION)
    edited_location_if = _on_if(HandlerKind.EDITED_LOCATION)
    edited_photo = _on(HandlerKind.EDITED_PHOTO)
    edited_photo_if = _on_if(HandlerKind.EDITED_PHOTO)
    edited_video = _on(HandlerKind.EDITED_VIDEO)
    edited_video_if = _on_if(HandlerKind.EDITED_VIDEO)
    message_data_callback = _on(HandlerKind.MESSAGE_DATA_CALLBACK)
    message_data_callback_if = _on_if(HandlerKind.MESSAGE_DATA_CALLBACK)
    inline_data_callback = _on(HandlerKind.INLINE_DATA_CALLBACK)
    inline_data_callback_if = _on_if(HandlerKind.INLINE_DATA_CALLBACK)
    message_game_callback = _on(HandlerKind.MESSAGE_GAME_CALLBACK)
    message_game_callback_if = _on_if(HandlerKind.MESSAGE_GAME_CALLBACK)
    inline_game_callback = _on(HandlerKind.INLINE_GAME_CALLBACK)
    inline_game_callback_if = _on_if(HandlerKind.INLINE_GAME_CALLBACK)
    inline = _on(HandlerKind.INLINE)
    inline_if = _on_if(HandlerKind.INLINE)
    chosen_inline = _on(HandlerKind.CHOSEN_INLINE)
    chosen_inline_if = _on_if(HandlerKind.CHOSEN_INLINE)
    shipping = _on(HandlerKind.SHIPPING)
    shipping_if = _on_if(HandlerKind.SHIPPING)
    pre_checkout = _on(HandlerKind.PRE_CHECKOUT)
    pre_checkout_if = _on_if(HandlerKind.PRE_CHECKOUT)
    updated_poll = _on(HandlerKind.UPDATED_POLL)
    updated_poll_if = _on_if(HandlerKind.UPDATED_POLL)
    poll_answer = _on(HandlerKind.POLL_ANSWER)
    poll_answer_if = _on_if(HandlerKind.POLL_ANSWER)
    chat_member = _on(HandlerKind.CHAT_MEMBER)
    chat_member_if = _on_if(HandlerKind.CHAT_MEMBER)
    my_chat_member = _on(HandlerKind.MY_CHAT_MEMBER)
    my_chat_member_if = _on_if(HandlerKind.MY_CHAT_MEMBER)

    def will_handle(self, kind: HandlerKind) -> bool:
        return bool(self._handlers.get(kind))

    # Username and command descriptions

    def username(self, username: str) -> None:
        """Set the username used to match `/command@username`."""
        self._username = username.lstrip("@")

    async def fetch_username(self) -> str | None:
        me = await self.bot.get_me()
        self._username = me.username
        logger.info("event_loop.username", username=me.username)
        return me.username

    async def _own_username(self) -> str | None:
        if self._username is not None:
            return self._username
        if self._username_lock is None:
            self._username_lock = anyio.Lock()
        async with self._username_lock:
            if self._username is None:
                await self.fetch_username()
        return self._username

    async def _is_for_this_bot(self, username: str | None) -> bool:
        if username is None:
            return True
        try:
            own = await self._own_username()
        except Exception:
            logger.exception("event_loop.username.fetch_failed")
            return False
        return own is not None and own.lower() == username.lower()

    async def set_commands_descriptions(self) -> None:
        """Push descriptions from `command_with_description` to the Bot API."""
        if not self._command_descriptions:
            return
        commands = [
            BotCommand(command=name, description=description)
            for name, description in self._command_descriptions.items()
        ]
        await self.bot.set_my_commands(commands)
        logger.info("event_loop.commands.set", count=len(commands))

    # Conversions

    def into_stateful(self, state: S) -> StatefulEventLoop[S]:
        """Continue registering handlers that also receive `state`.

        Handlers registered so far are kept.
        """
        from ..state import StatefulEventLoop

        return StatefulEventLoop.from_event_loop(self, state)

    def polling(
        self,
        *,
        limit: int | None = None,
        timeout: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        request_timeout: float | None = None,
        last_n_updates: int | None = None,
        setup_timeout: float | None = None,
    ) -> Polling:
        from .polling import DEFAULT_SETUP_TIMEOUT, Polling

        return Polling(
            self,
            limit=limit,
            timeout=timeout,
            allowed_updates=allowed_updates,
            request_timeout=request_timeout,
            last_n_updates=last_n_updates,
            setup_timeout=setup_timeout
            if setup_timeout is not None
            else DEFAULT_SETUP_TIMEOUT,
        )

    def webhook(self, url: str, port: int, **options: Any) -> Webhook:
        from .webhook import Webhook

        return Webhook(self, url, port, **options)

    # Dispatch

    async def handle_update(self, update: Update, task_group: TaskGroup) -> None:
        """Route one update, launching matching handlers in `task_group`.

        Returns once every matching handler has been launched; handlers
        themselves are not awaited.
        """
        logger.debug("event_loop.update", update_id=update.update_id, kind=update.kind)
        hook_context = UpdateContext(bot=self.bot, update_id=update.update_id)
        await self._launch(self._before_update, hook_context, task_group)
        await self._route(update, task_group)
        await self._launch(self._after_update, hook_context, task_group)

    async def _route(self, update: Update, task_group: TaskGroup) -> None:
        update_id = update.update_id
        message = update.message or update.channel_post
        if message is not None:
            await self._route_message(update, message, task_group)
            return
        edited = update.edited_message or update.edited_channel_post
        if edited is not None:
            await self._route_edited(update, edited, task_group)
            return
        if update.callback_query is not None:
            await self._route_callback(update, task_group)
            return

        kind: HandlerKind | None = None
        build: Callable[[], Any] | None = None
        if update.inline_query is not None:
            kind = HandlerKind.INLINE
            build = partial(InlineContext.build, self.bot, update_id, update.inline_query)
        elif update.chosen_inline_result is not None:
            kind = HandlerKind.CHOSEN_INLINE
            build = partial(
                ChosenInlineContext.build,
                self.bot,
                update_id,
                update.chosen_inline_result,
            )
        elif update.shipping_query is not None:
            kind = HandlerKind.SHIPPING
            build = partial(
                ShippingContext.build, self.bot, update_id, update.shipping_query
            )
        elif update.pre_checkout_query is not None:
            kind = HandlerKind.PRE_CHECKOUT
            build = partial(
                PreCheckoutContext.build, self.bot, update_id, update.pre_checkout_query
            )
        elif update.poll is not None:
            kind = HandlerKind.UPDATED_POLL
            build = partial(
                UpdatedPollContext, bot=self.bot, update_id=update_id, poll=update.poll
            )
        elif update.poll_answer is not None:
            kind = HandlerKind.POLL_ANSWER
            build = partial(
                PollAnswerContext,
                bot=self.bot,
                update_id=update_id,
                answer=update.poll_answer,
            )
        elif update.chat_member is not None:
            member = update.chat_member
            kind = HandlerKind.CHAT_MEMBER
            build = partial(
                ChatMemberContext,
                bot=self.bot,
                update_id=update_id,
                chat=member.chat,
                from_=member.from_,
                update=member,
            )
        elif update.my_chat_member is not None:
            member = update.my_chat_member
            kind = HandlerKind.MY_CHAT_MEMBER
            build = partial(
                MyChatMemberContext,
                bot=self.bot,
                update_id=update_id,
                chat=member.chat,
                from_=member.from_,
                update=member,
            )

        if kind is None or build is None or not self.will_handle(kind):
            await self._route_unhandled(update, task_group)
            return
        await self._launch(self._handlers[kind], build(), task_group)

    async def _route_message(
        self, update: Update, message: Message, task_group: TaskGroup
    ) -> None:
        classified = classify_message(message)
        if classified is None:
            await self._route_unhandled(update, task_group)
            return
        kind, build = classified
        base = MessageContext.message_fields(self.bot, update.update_id, message)
        if kind is HandlerKind.TEXT:
            await self._route_text(update, message, base, build, self._commands, task_group)
            return
        if not self.will_handle(kind):
            await self._route_unhandled(update, task_group)
            return
        await self._launch(self._handlers[kind], build(base, message), task_group)

    async def _route_edited(
        self, update: Update, message: Message, task_group: TaskGroup
    ) -> None:
        if message.edit_date is None:
            logger.error(
                "event_loop.edited_message.missing_edit_date",
                update_id=update.update_id,
                message_id=message.message_id,
            )
            return
        classified = classify_edited_message(message)
        if classified is None:
            await self._route_unhandled(update, task_group)
            return
        kind, build = classified
        base = MessageContext.message_fields(self.bot, update.update_id, message)
        base["edit_date"] = message.edit_date
        if kind is HandlerKind.EDITED_TEXT:
            await self._route_text(
                update, message, base, build, self._edited_commands, task_group
            )
            return
        if not self.will_handle(kind):
            await self._route_unhandled(update, task_group)
            return
        await self._launch(self._handlers[kind], build(base, message), task_group)

    async def _route_text(
        self,
        update: Update,
        message: Message,
        base: dict[str, Any],
        build: Callable[[dict[str, Any], Message], MessageContext],
        commands: dict[str, list[_Entry]],
        task_group: TaskGroup,
    ) -> None:
        text_kind = (
            HandlerKind.EDITED_TEXT if "edit_date" in base else HandlerKind.TEXT
        )
        parsed = parse_command(message.text or "", message.entities)
        if parsed is not None:
            if not await self._is_for_this_bot(parsed.username):
                logger.debug(
                    "event_loop.command.other_bot",
                    update_id=update.update_id,
                    command=parsed.name,
                    username=parsed.username,
                )
                return
            entries = commands.get(parsed.name)
            if entries:
                context = CommandContext(command=parsed.name, context=build(base, message))
                await self._launch(entries, context, task_group)
                return
        if not self.will_handle(text_kind):
            await self._route_unhandled(update, task_group)
            return
        await self._launch(self._handlers[text_kind], build(base, message), task_group)

    async def _route_callback(self, update: Update, task_group: TaskGroup) -> None:
        query = update.callback_query
        assert query is not None
        base = CallbackContext.callback_fields(self.bot, update.update_id, query)
        kind: HandlerKind | None = None
        build: Callable[[], Any] | None = None
        if query.data is not None:
            if query.message is not None:
                kind = HandlerKind.MESSAGE_DATA_CALLBACK
                build = partial(
                    MessageDataCallbackContext,
                    **base,
                    message=query.message,
                    data=query.data,
                )
            elif query.inline_message_id is not None:
                kind = HandlerKind.INLINE_DATA_CALLBACK
                build = partial(
                    InlineDataCallbackContext,
                    **base,
                    inline_message_id=query.inline_message_id,
                    data=query.data,
                )
        elif query.game_short_name is not None:
            if query.message is not None:
                kind = HandlerKind.MESSAGE_GAME_CALLBACK
                build = partial(
                    MessageGameCallbackContext,
                    **base,
                    message=query.message,
                    game_short_name=query.game_short_name,
                )
            elif query.inline_message_id is not None:
                kind = HandlerKind.INLINE_GAME_CALLBACK
                build = partial(
                    InlineGameCallbackContext,
                    **base,
                    inline_message_id=query.inline_message_id,
                    game_short_name=query.game_short_name,
                )
        if kind is None or build is None or not self.will_handle(kind):
            await self._route_unhandled(update, task_group)
            return
        await self._launch(self._handlers[kind], build(), task_group)

    async def _route_unhandled(self, update: Update, task_group: TaskGroup) -> None:
        if not self._unhandled:
            logger.debug("event_loop.update.dropped", update_id=update.update_id)
            return
        context = UnhandledContext(
            bot=self.bot, update_id=update.update_id, update=update
        )
        await self._launch(self._unhandled, context, task_group)

    async def _launch(
        self, entries: Sequence[_Entry], context: Any, task_group: TaskGroup
    ) -> None:
        for entry in entries:
            if entry.predicate is not None and not await self._check(entry, context):
                continue
            task_group.start_soon(self._invoke, entry, context, name=entry.name)

    async def _check(self, entry: _Entry, context: Any) -> bool:
        assert entry.predicate is not None
        try:
            return await entry.predicate(context)
        except Exception:
            logger.exception(
                "predicate.failed", handler=entry.name, update_id=context.update_id
            )
            return False

    async def _invoke(self, entry: _Entry, context: Any) -> None:
        try:
            await entry.handler(context)
        except Exception:
            logger.exception(
                "handler.failed", handler=entry.name, update_id=context.update_id
            )
