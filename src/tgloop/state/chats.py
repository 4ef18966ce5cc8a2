from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

S = TypeVar("S")


def _chat_id(context: Any) -> int:
    return context.chat.id


class Chats(Generic[S]):
    """Per-chat state keyed by chat id.

    Not synchronized: guard it with an `anyio.Lock` when handlers mutate it
    concurrently.
    """

    def __init__(self) -> None:
        self._states: dict[int, S] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[int]:
        return iter(self._states)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._states

    def chats(self) -> Iterator[int]:
        return iter(self._states)

    def states(self) -> Iterator[S]:
        return iter(self._states.values())

    def items(self) -> Iterator[tuple[int, S]]:
        return iter(self._states.items())

    def get_by_id(self, chat_id: int) -> S | None:
        return self._states.get(chat_id)

    def get(self, context: Any) -> S | None:
        return self.get_by_id(_chat_id(context))

    def entry_by_id(self, chat_id: int, default: Callable[[], S]) -> S:
        """Return the chat's state, inserting `default()` when it is missing."""
        if chat_id not in self._states:
            self._states[chat_id] = default()
        return self._states[chat_id]

    def entry(self, context: Any, default: Callable[[], S]) -> S:
        return self.entry_by_id(_chat_id(context), default)

    def has_by_id(self, chat_id: int) -> bool:
        return chat_id in self._states

    def has(self, context: Any) -> bool:
        return self.has_by_id(_chat_id(context))

    def insert_by_id(self, chat_id: int, value: S) -> S | None:
        """Store `value` and return the state it replaced, if any."""
        previous = self._states.get(chat_id)
        self._states[chat_id] = value
        return previous

    def insert(self, context: Any, value: S) -> S | None:
        return self.insert_by_id(_chat_id(context), value)

    def remove_by_id(self, chat_id: int) -> S | None:
        return self._states.pop(chat_id, None)

    def remove(self, context: Any) -> S | None:
        return self.remove_by_id(_chat_id(context))

    def retain(self, predicate: Callable[[int, S], bool]) -> None:
        self._states = {
            chat_id: state
            for chat_id, state in self._states.items()
            if predicate(chat_id, state)
        }

    def clear(self) -> None:
        self._states.clear()
