from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

PredicateFn = Callable[..., bool | Awaitable[bool]]

__all__ = ["Predicate", "PredicateFn", "and_", "evaluate", "not_", "or_", "without_state"]


async def evaluate(predicate: PredicateFn, *args: Any) -> bool:
    """Call a sync or async predicate and return its verdict."""
    result = predicate(*args)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


class Predicate:
    """Wraps a predicate so it composes with `&`, `|` and `~`.

    Works for both stateless `(ctx)` and stateful `(ctx, state)` predicates;
    arguments are forwarded untouched.
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: PredicateFn) -> None:
        self._fn = fn

    async def __call__(self, *args: Any) -> bool:
        return await evaluate(self._fn, *args)

    def __and__(self, other: PredicateFn) -> Predicate:
        return and_(self, other)

    def __or__(self, other: PredicateFn) -> Predicate:
        return or_(self, other)

    def __invert__(self) -> Predicate:
        return not_(self)

    def __repr__(self) -> str:
        return f"Predicate({self._fn!r})"


def and_(first: PredicateFn, second: PredicateFn) -> Predicate:
    async def both(*args: Any) -> bool:
        if not await evaluate(first, *args):
            return False
        return await evaluate(second, *args)

    return Predicate(both)


def or_(first: PredicateFn, second: PredicateFn) -> Predicate:
    async def either(*args: Any) -> bool:
        if await evaluate(first, *args):
            return True
        return await evaluate(second, *args)

    return Predicate(either)


def not_(predicate: PredicateFn) -> Predicate:
    async def negated(*args: Any) -> bool:
        return not await evaluate(predicate, *args)

    return Predicate(negated)


def without_state(predicate: PredicateFn) -> Predicate:
    """Adapt a `(ctx)` predicate for use in a stateful event loop."""

    async def stateless(context: Any, _state: Any) -> bool:
        return await evaluate(predicate, context)

    return Predicate(stateless)
