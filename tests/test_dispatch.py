from typing import Any

import anyio
import pytest

from tests.fakes import (
    FakeApi,
    message,
    recorder,
    text_message,
    text_update,
    update,
    user,
)
from tgloop.contexts import (
    CommandContext,
    DocumentContext,
    EditedTextContext,
    InlineContext,
    MessageDataCallbackContext,
    PhotoContext,
    TextContext,
    UnhandledContext,
    UpdateContext,
    VenueContext,
)
from tgloop.event_loop import EventLoop
from tgloop.predicates import is_private
from tgloop.types import Update, UpdateKind


async def dispatch(event_loop: EventLoop, *updates: Update) -> None:
    async with anyio.create_task_group() as task_group:
        for item in updates:
            await event_loop.handle_update(item, task_group)


@pytest.mark.anyio
async def test_handlers_launch_in_registration_order(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(recorder(calls, "h1"))
        event_loop.text(recorder(calls, "h2"))
        event_loop.text(recorder(calls, "h3"))
        await dispatch(event_loop, text_update(1, "hi"))

    assert [tag for tag, _ in calls] == ["h1", "h2", "h3"]


@pytest.mark.anyio
async def test_duplicate_handlers_both_fire(api: FakeApi) -> None:
    calls: list[Any] = []
    handler = recorder(calls, "same")
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(handler)
        event_loop.text(handler)
        await dispatch(event_loop, text_update(1, "hi"))

    assert len(calls) == 2


@pytest.mark.anyio
async def test_text_context_fields(api: FakeApi) -> None:
    seen: list[TextContext] = []

    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.text
        async def on_text(context: TextContext) -> None:
            seen.append(context)

        reply = message(50, text="original")
        await dispatch(event_loop, text_update(7, "hello", reply_to_message=reply))

    context = seen[0]
    assert context.update_id == 7
    assert context.text == "hello"
    assert context.chat.id == 10
    assert context.message_id == 100
    assert context.from_ is not None and context.from_.username == "alice"
    assert context.reply_to is not None and context.reply_to.message_id == 50
    assert context.forward is None


@pytest.mark.anyio
async def test_dispatch_does_not_wait_for_handlers(api: FakeApi) -> None:
    release = anyio.Event()
    finished: list[str] = []

    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.text
        async def slow(context: TextContext) -> None:
            await release.wait()
            finished.append(context.text)

        async with anyio.create_task_group() as task_group:
            with anyio.fail_after(1):
                await event_loop.handle_update(text_update(1, "first"), task_group)
                await event_loop.handle_update(text_update(2, "second"), task_group)
            assert finished == []
            release.set()

    assert sorted(finished) == ["first", "second"]


@pytest.mark.anyio
async def test_command_routes_only_to_command_handlers(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder(calls, "start"))
        event_loop.text(recorder(calls, "text"))
        await dispatch(event_loop, text_update(1, "/start"))

    assert [tag for tag, _ in calls] == ["start"]


@pytest.mark.anyio
async def test_command_context_keeps_text(api: FakeApi) -> None:
    seen: list[CommandContext[TextContext]] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.command("hello")
        async def hello(context: CommandContext[TextContext]) -> None:
            seen.append(context)

        await dispatch(event_loop, text_update(1, "/hello world"))

    context = seen[0]
    assert context.command == "hello"
    assert context.context.text == "/hello world"
    assert context.args == "world"
    assert context.chat.id == 10
    assert context.text == "/hello world"


@pytest.mark.anyio
async def test_command_reply_uses_message_ids(api: FakeApi) -> None:
    api.respond(
        "sendMessage",
        {"message_id": 101, "chat": {"id": 10, "type": "private"}},
    )
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.command("ping")
        async def ping(context: CommandContext[TextContext]) -> None:
            await context.send_message_in_reply("pong")

        await dispatch(event_loop, text_update(1, "/ping"))

    assert api.calls_to("sendMessage") == [
        {"chat_id": 10, "text": "pong", "reply_to_message_id": 100}
    ]


@pytest.mark.anyio
async def test_command_with_own_username(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.username("examplebot")
        event_loop.command("start", recorder(calls, "start"))
        event_loop.text(recorder(calls, "text"))
        await dispatch(
            event_loop,
            text_update(1, "/start@examplebot"),
            text_update(2, "/start@ExampleBot"),
        )

    assert [tag for tag, _ in calls] == ["start", "start"]
    assert api.calls_to("getMe") == []


@pytest.mark.anyio
async def test_command_for_other_bot_is_dropped(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.username("examplebot")
        event_loop.command("start", recorder(calls, "start"))
        event_loop.text(recorder(calls, "text"))
        event_loop.unhandled(recorder(calls, "unhandled"))
        await dispatch(event_loop, text_update(1, "/start@otherbot"))

    assert calls == []


@pytest.mark.anyio
async def test_username_is_fetched_once(api: FakeApi) -> None:
    api.respond("getMe", {"id": 99, "is_bot": True, "first_name": "Bot", "username": "examplebot"})
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder(calls, "start"))
        await dispatch(
            event_loop,
            text_update(1, "/start@examplebot"),
            text_update(2, "/start@otherbot"),
            text_update(3, "/start@examplebot"),
        )

    assert len(calls) == 2
    assert len(api.calls_to("getMe")) == 1


@pytest.mark.anyio
async def test_username_fetch_failure_drops_command(api: FakeApi) -> None:
    api.fail("getMe", "Unauthorized", error_code=401)
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder(calls, "start"))
        await dispatch(event_loop, text_update(1, "/start@examplebot"))
        await dispatch(event_loop, text_update(2, "/start"))

    assert [ctx.update_id for _, ctx in calls] == [2]


@pytest.mark.anyio
async def test_unregistered_command_falls_back_to_text(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder(calls, "start"))
        event_loop.text(recorder(calls, "text"))
        await dispatch(event_loop, text_update(1, "/unknown arg"))

    assert [tag for tag, _ in calls] == ["text"]


@pytest.mark.anyio
async def test_commands_share_one_handler(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.commands(["help", "about"], recorder(calls, "info"))
        await dispatch(event_loop, text_update(1, "/help"), text_update(2, "/about"))

    assert [ctx.command for _, ctx in calls] == ["help", "about"]


@pytest.mark.anyio
async def test_edited_command(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder(calls, "new"))
        event_loop.edited_command("start", recorder(calls, "edited"))
        edited = text_message("/start again", edit_date=1_700_000_100)
        await dispatch(event_loop, update(1, edited_message=edited))

    [(tag, context)] = calls
    assert tag == "edited"
    assert isinstance(context.context, EditedTextContext)
    assert context.edit_date == 1_700_000_100


@pytest.mark.anyio
async def test_edited_message_without_edit_date_is_dropped(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.edited_text(recorder(calls, "edited"))
        event_loop.unhandled(recorder(calls, "unhandled"))
        await dispatch(event_loop, update(1, edited_message=text_message("hi")))

    assert calls == []


@pytest.mark.anyio
async def test_predicate_gates_handler(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text_if(is_private, recorder(calls, "private"))
        await dispatch(
            event_loop,
            text_update(1, "in a group", chat_type="group"),
            text_update(2, "in private"),
        )

    assert [ctx.update_id for _, ctx in calls] == [2]


@pytest.mark.anyio
async def test_predicate_skip_does_not_affect_siblings(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(recorder(calls, "first"))
        event_loop.text_if(lambda ctx: False, recorder(calls, "never"))
        event_loop.text(recorder(calls, "last"))
        await dispatch(event_loop, text_update(1, "hi"))

    assert [tag for tag, _ in calls] == ["first", "last"]


@pytest.mark.anyio
async def test_predicate_decorator_form(api: FakeApi) -> None:
    seen: list[int] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.text_if(lambda ctx: ctx.text.startswith("!"))
        async def bang(context: TextContext) -> None:
            seen.append(context.update_id)

        await dispatch(event_loop, text_update(1, "!go"), text_update(2, "go"))

    assert seen == [1]


@pytest.mark.anyio
async def test_failing_predicate_counts_as_false(api: FakeApi) -> None:
    calls: list[Any] = []

    def broken(context: TextContext) -> bool:
        raise RuntimeError("bad predicate")

    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text_if(broken, recorder(calls, "gated"))
        event_loop.text(recorder(calls, "open"))
        await dispatch(event_loop, text_update(1, "hi"))

    assert [tag for tag, _ in calls] == ["open"]


@pytest.mark.anyio
async def test_failing_handler_does_not_cancel_siblings(api: FakeApi) -> None:
    calls: list[Any] = []

    async def broken(context: TextContext) -> None:
        raise RuntimeError("handler bug")

    async def slow(context: TextContext) -> None:
        await anyio.sleep(0.01)
        calls.append(context.update_id)

    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(broken)
        event_loop.text(slow)
        await dispatch(event_loop, text_update(1, "a"), text_update(2, "b"))

    assert sorted(calls) == [1, 2]


@pytest.mark.anyio
async def test_unhandled_receives_update_once(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(recorder(calls, "text"))
        event_loop.unhandled(recorder(calls, "unhandled"))
        await dispatch(
            event_loop, update(5, message=message(sticker=None, contact={"phone_number": "1", "first_name": "Bob"}))
        )

    [(tag, context)] = calls
    assert tag == "unhandled"
    assert isinstance(context, UnhandledContext)
    assert context.update.update_id == 5
    assert context.update.kind is UpdateKind.MESSAGE


@pytest.mark.anyio
async def test_without_unhandled_update_is_dropped(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(recorder(calls, "text"))
        await dispatch(
            event_loop,
            update(1, inline_query={"id": "q", "from": user(), "query": "x", "offset": ""}),
        )

    assert calls == []


@pytest.mark.anyio
async def test_registered_kind_with_false_predicate_is_not_unhandled(
    api: FakeApi,
) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text_if(lambda ctx: False, recorder(calls, "text"))
        event_loop.unhandled(recorder(calls, "unhandled"))
        await dispatch(event_loop, text_update(1, "hi"))

    assert calls == []


@pytest.mark.anyio
async def test_before_and_after_hooks_wrap_every_update(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.before_update(recorder(calls, "before"))
        event_loop.text(recorder(calls, "text"))
        event_loop.after_update(recorder(calls, "after"))
        await dispatch(
            event_loop,
            text_update(1, "hi"),
            update(2, poll={"id": "p", "question": "?"}),
        )

    assert [(tag, ctx.update_id) for tag, ctx in calls] == [
        ("before", 1),
        ("text", 1),
        ("after", 1),
        ("before", 2),
        ("after", 2),
    ]
    assert all(isinstance(ctx, UpdateContext) for tag, ctx in calls if tag != "text")


@pytest.mark.anyio
async def test_channel_posts_route_like_messages(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.text(recorder(calls, "text"))
        post = text_message("news", chat_type="channel", chat_id=-100)
        await dispatch(event_loop, update(1, channel_post=post))

    [(_, context)] = calls
    assert context.chat.is_channel


@pytest.mark.anyio
async def test_media_kinds(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.document(recorder(calls, "document"))
        event_loop.photo(recorder(calls, "photo"))
        event_loop.venue(recorder(calls, "venue"))
        event_loop.animation(recorder(calls, "animation"))
        location = {"latitude": 1.0, "longitude": 2.0}
        await dispatch(
            event_loop,
            update(
                1,
                message=message(
                    document={"file_id": "d", "file_name": "a.txt"}, caption="doc"
                ),
            ),
            update(2, message=message(photo=[{"file_id": "p", "width": 1, "height": 1}])),
            update(
                3,
                message=message(
                    venue={"location": location, "title": "Cafe", "address": "Main"},
                    location=location,
                ),
            ),
            update(
                4,
                message=message(
                    animation={"file_id": "g", "width": 1, "height": 1, "duration": 1},
                    document={"file_id": "g"},
                ),
            ),
        )

    tags = {tag: ctx for tag, ctx in calls}
    assert set(tags) == {"document", "photo", "venue", "animation"}
    assert isinstance(tags["document"], DocumentContext)
    assert tags["document"].caption == "doc"
    assert isinstance(tags["photo"], PhotoContext)
    assert isinstance(tags["venue"], VenueContext)
    assert tags["venue"].venue.title == "Cafe"


@pytest.mark.anyio
async def test_data_callback_answer(api: FakeApi) -> None:
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.message_data_callback
        async def on_click(context: MessageDataCallbackContext) -> None:
            assert context.data == "yes"
            assert context.message.message_id == 100
            await context.notify("Thanks!")

        query = {
            "id": "cb1",
            "from": user(),
            "chat_instance": "ci",
            "message": message(),
            "data": "yes",
        }
        await dispatch(event_loop, update(1, callback_query=query))

    assert api.calls_to("answerCallbackQuery") == [
        {"callback_query_id": "cb1", "text": "Thanks!"}
    ]


@pytest.mark.anyio
async def test_inline_data_callback_without_handler_is_unhandled(
    api: FakeApi,
) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.message_data_callback(recorder(calls, "message"))
        event_loop.unhandled(recorder(calls, "unhandled"))
        query = {
            "id": "cb1",
            "from": user(),
            "chat_instance": "ci",
            "inline_message_id": "im",
            "data": "yes",
        }
        await dispatch(event_loop, update(1, callback_query=query))

    assert [tag for tag, _ in calls] == ["unhandled"]


@pytest.mark.anyio
async def test_inline_query_answer(api: FakeApi) -> None:
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.inline
        async def on_inline(context: InlineContext) -> None:
            await context.answer([], cache_time=0)

        query = {"id": "iq", "from": user(), "query": "cats", "offset": ""}
        await dispatch(event_loop, update(1, inline_query=query))

    assert api.calls_to("answerInlineQuery") == [
        {"inline_query_id": "iq", "results": [], "cache_time": 0}
    ]


@pytest.mark.anyio
async def test_pre_checkout_err(api: FakeApi) -> None:
    async with api.bot() as bot:
        event_loop = bot.event_loop()

        @event_loop.pre_checkout
        async def on_checkout(context: Any) -> None:
            await context.err("Sold out")

        query = {
            "id": "pc",
            "from": user(),
            "currency": "EUR",
            "total_amount": 100,
            "invoice_payload": "p",
        }
        await dispatch(event_loop, update(1, pre_checkout_query=query))

    assert api.calls_to("answerPreCheckoutQuery") == [
        {"pre_checkout_query_id": "pc", "ok": False, "error_message": "Sold out"}
    ]


@pytest.mark.anyio
async def test_set_commands_descriptions(api: FakeApi) -> None:
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.start_with_description("Start the bot", recorder([], "start"))
        event_loop.command_with_description("stats", "Show stats", recorder([], "stats"))
        event_loop.command("hidden", recorder([], "hidden"))
        await event_loop.set_commands_descriptions()

    assert api.calls_to("setMyCommands") == [
        {
            "commands": [
                {"command": "start", "description": "Start the bot"},
                {"command": "stats", "description": "Show stats"},
            ]
        }
    ]


@pytest.mark.anyio
async def test_set_commands_descriptions_skips_empty(api: FakeApi) -> None:
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.command("start", recorder([], "start"))
        await event_loop.set_commands_descriptions()

    assert api.calls == []
