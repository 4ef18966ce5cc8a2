from __future__ import annotations

from typing import Any

from .base import Predicate


@Predicate
def is_forwarded(context: Any) -> bool:
    return getattr(context, "forward", None) is not None


@Predicate
def is_in_reply(context: Any) -> bool:
    return getattr(context, "reply_to", None) is not None
