from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..event_loop import EventLoop
from ..predicates import PredicateFn, evaluate

if TYPE_CHECKING:
    from ..client import Bot

S = TypeVar("S")


class StatefulEventLoop(EventLoop, Generic[S]):
    """Event loop whose handlers and predicates also receive shared state.

    Every handler gets the same `state` object. Mutating it safely across
    concurrent handlers is up to the state itself, e.g. with an `anyio.Lock`.
    Stateless predicates can be adapted with `without_state`.
    """

    def __init__(self, bot: Bot, state: S) -> None:
        super().__init__(bot)
        self._state = state

    @classmethod
    def from_event_loop(cls, event_loop: EventLoop, state: S) -> StatefulEventLoop[S]:
        stateful = cls(event_loop.bot, state)
        stateful._handlers = {
            kind: list(entries) for kind, entries in event_loop._handlers.items()
        }
        stateful._commands = {
            name: list(entries) for name, entries in event_loop._commands.items()
        }
        stateful._edited_commands = {
            name: list(entries) for name, entries in event_loop._edited_commands.items()
        }
        stateful._command_descriptions = dict(event_loop._command_descriptions)
        stateful._before_update = list(event_loop._before_update)
        stateful._after_update = list(event_loop._after_update)
        stateful._unhandled = list(event_loop._unhandled)
        stateful._username = event_loop._username
        return stateful

    def get_state(self) -> S:
        return self._state

    def _adapt_handler(
        self, handler: Callable[..., Awaitable[None]]
    ) -> Callable[[Any], Awaitable[None]]:
        state = self._state

        async def with_state(context: Any) -> None:
            await handler(context, state)

        return with_state

    def _adapt_predicate(self, predicate: PredicateFn) -> Callable[[Any], Awaitable[bool]]:
        state = self._state

        async def with_state(context: Any) -> bool:
            return await evaluate(predicate, context, state)

        return with_state
