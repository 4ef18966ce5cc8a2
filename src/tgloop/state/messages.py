from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, NamedTuple, TypeVar

S = TypeVar("S")


class MessageId(NamedTuple):
    chat_id: int
    message_id: int

    @classmethod
    def from_context(cls, context: Any) -> MessageId:
        return cls(context.chat.id, context.message_id)


class Messages(Generic[S]):
    """Per-message state keyed by `(chat_id, message_id)`."""

    def __init__(self) -> None:
        self._states: dict[MessageId, S] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[MessageId]:
        return iter(self._states)

    def items(self) -> Iterator[tuple[MessageId, S]]:
        return iter(self._states.items())

    def items_in_chat_by_id(self, chat_id: int) -> Iterator[tuple[int, S]]:
        for key, state in self._states.items():
            if key.chat_id == chat_id:
                yield key.message_id, state

    def items_in_chat(self, context: Any) -> Iterator[tuple[int, S]]:
        return self.items_in_chat_by_id(context.chat.id)

    def len_in_chat_by_id(self, chat_id: int) -> int:
        return sum(1 for key in self._states if key.chat_id == chat_id)

    def len_in_chat(self, context: Any) -> int:
        return self.len_in_chat_by_id(context.chat.id)

    def get_by_id(self, message_id: MessageId) -> S | None:
        return self._states.get(message_id)

    def get(self, context: Any) -> S | None:
        return self.get_by_id(MessageId.from_context(context))

    def entry_by_id(self, message_id: MessageId, default: Callable[[], S]) -> S:
        if message_id not in self._states:
            self._states[message_id] = default()
        return self._states[message_id]

    def entry(self, context: Any, default: Callable[[], S]) -> S:
        return self.entry_by_id(MessageId.from_context(context), default)

    def has_by_id(self, message_id: MessageId) -> bool:
        return message_id in self._states

    def has(self, context: Any) -> bool:
        return self.has_by_id(MessageId.from_context(context))

    def insert_by_id(self, message_id: MessageId, value: S) -> S | None:
        previous = self._states.get(message_id)
        self._states[message_id] = value
        return previous

    def insert(self, context: Any, value: S) -> S | None:
        return self.insert_by_id(MessageId.from_context(context), value)

    def remove_by_id(self, message_id: MessageId) -> S | None:
        return self._states.pop(message_id, None)

    def remove(self, context: Any) -> S | None:
        return self.remove_by_id(MessageId.from_context(context))

    def remove_all_in_chat_by_id(self, chat_id: int) -> list[tuple[int, S]]:
        """Drop every state in the chat and return what was removed."""
        removed = [
            (key.message_id, state)
            for key, state in self._states.items()
            if key.chat_id == chat_id
        ]
        for message_id, _ in removed:
            del self._states[MessageId(chat_id, message_id)]
        return removed

    def remove_all_in_chat(self, context: Any) -> list[tuple[int, S]]:
        return self.remove_all_in_chat_by_id(context.chat.id)

    def clear(self) -> None:
        self._states.clear()
