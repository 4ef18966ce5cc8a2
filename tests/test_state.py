from types import SimpleNamespace
from typing import Any

import anyio
import pytest

from tests.fakes import FakeApi, recorder, text_update
from tgloop.contexts import TextContext
from tgloop.predicates import is_private, without_state
from tgloop.state import Chats, MessageId, Messages, StatefulEventLoop


def in_chat(chat_id: int, message_id: int = 1) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(id=chat_id), message_id=message_id)


class Counter:
    def __init__(self) -> None:
        self.value = 0
        self.lock = anyio.Lock()

    async def bump(self) -> None:
        async with self.lock:
            current = self.value
            await anyio.sleep(0)
            self.value = current + 1


@pytest.mark.anyio
async def test_handlers_share_one_state(api: FakeApi) -> None:
    state = Counter()
    seen: list[Any] = []

    async with api.bot() as bot:
        event_loop = bot.stateful_event_loop(state)

        @event_loop.text
        async def count(context: TextContext, counter: Counter) -> None:
            seen.append(counter)
            await counter.bump()

        async with anyio.create_task_group() as task_group:
            for update_id in range(1, 6):
                await event_loop.handle_update(text_update(update_id, "x"), task_group)

    assert state.value == 5
    assert all(item is state for item in seen)
    assert event_loop.get_state() is state


@pytest.mark.anyio
async def test_stateful_predicate_receives_state(api: FakeApi) -> None:
    calls: list[Any] = []

    def enabled(context: Any, settings: dict[str, bool]) -> bool:
        return settings["enabled"]

    settings = {"enabled": False}
    async with api.bot() as bot:
        event_loop = bot.stateful_event_loop(settings)
        event_loop.text_if(enabled, recorder(calls, "text"))
        event_loop.text_if(without_state(is_private), recorder(calls, "private"))

        async with anyio.create_task_group() as task_group:
            await event_loop.handle_update(text_update(1, "off"), task_group)
            settings["enabled"] = True
            await event_loop.handle_update(text_update(2, "on"), task_group)

    assert [(tag, ctx.update_id) for tag, ctx, _ in calls] == [
        ("private", 1),
        ("text", 2),
        ("private", 2),
    ]


@pytest.mark.anyio
async def test_into_stateful_keeps_earlier_handlers(api: FakeApi) -> None:
    calls: list[Any] = []
    async with api.bot() as bot:
        event_loop = bot.event_loop()
        event_loop.username("examplebot")
        event_loop.text(recorder(calls, "stateless"))
        event_loop.help_with_description("Help", recorder(calls, "help"))

        stateful = event_loop.into_stateful("shared")
        stateful.text(recorder(calls, "stateful"))

        async with anyio.create_task_group() as task_group:
            await stateful.handle_update(text_update(1, "hi"), task_group)
            await stateful.handle_update(text_update(2, "/help@examplebot"), task_group)
        await stateful.set_commands_descriptions()

    assert isinstance(stateful, StatefulEventLoop)
    assert [call[0] for call in calls] == ["stateless", "stateful", "help"]
    assert len(calls[0]) == 2
    assert calls[1][2] == "shared"
    assert api.calls_to("getMe") == []
    assert api.calls_to("setMyCommands") == [
        {"commands": [{"command": "help", "description": "Help"}]}
    ]


def test_chats_insert_get_remove() -> None:
    chats: Chats[str] = Chats()
    context = in_chat(7)

    assert chats.insert(context, "a") is None
    assert chats.insert(context, "b") == "a"
    assert chats.get(context) == "b"
    assert chats.has_by_id(7)
    assert 7 in chats
    assert len(chats) == 1
    assert chats.remove(context) == "b"
    assert chats.remove_by_id(7) is None
    assert not chats.has(context)


def test_chats_entry_uses_default_once() -> None:
    chats: Chats[list[int]] = Chats()
    chats.entry(in_chat(1), list).append(1)
    chats.entry(in_chat(1), list).append(2)

    assert chats.get_by_id(1) == [1, 2]


def test_chats_retain_and_iterate() -> None:
    chats: Chats[int] = Chats()
    for chat_id in range(5):
        chats.insert_by_id(chat_id, chat_id * 10)

    chats.retain(lambda chat_id, value: value >= 20)

    assert sorted(chats.chats()) == [2, 3, 4]
    assert sorted(chats.states()) == [20, 30, 40]
    assert dict(chats.items()) == {2: 20, 3: 30, 4: 40}
    chats.clear()
    assert len(chats) == 0


def test_messages_are_keyed_by_chat_and_message() -> None:
    messages: Messages[str] = Messages()
    messages.insert(in_chat(1, 10), "first")
    messages.insert(in_chat(1, 11), "second")
    messages.insert(in_chat(2, 10), "other chat")

    assert messages.get(in_chat(1, 10)) == "first"
    assert messages.get_by_id(MessageId(2, 10)) == "other chat"
    assert MessageId.from_context(in_chat(1, 11)) == MessageId(1, 11)
    assert messages.len_in_chat_by_id(1) == 2
    assert sorted(messages.items_in_chat(in_chat(1))) == [
        (10, "first"),
        (11, "second"),
    ]
    assert len(messages) == 3


def test_messages_remove_all_in_chat() -> None:
    messages: Messages[int] = Messages()
    messages.insert_by_id(MessageId(1, 1), 1)
    messages.insert_by_id(MessageId(1, 2), 2)
    messages.insert_by_id(MessageId(3, 1), 3)

    removed = messages.remove_all_in_chat(in_chat(1))

    assert sorted(removed) == [(1, 1), (2, 2)]
    assert list(messages) == [MessageId(3, 1)]
    assert messages.len_in_chat(in_chat(1)) == 0


def test_messages_entry_and_remove() -> None:
    messages: Messages[dict[str, int]] = Messages()
    context = in_chat(5, 50)
    messages.entry(context, dict)["votes"] = 1
    messages.entry(context, dict)["votes"] += 1

    assert messages.has(context)
    assert messages.remove(context) == {"votes": 2}
    assert not messages.has_by_id(MessageId(5, 50))
