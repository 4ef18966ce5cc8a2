from __future__ import annotations

from typing import Any

from .base import Predicate


def _chat_of(context: Any) -> Any:
    chat = getattr(context, "chat", None)
    if chat is None:
        message = getattr(context, "message", None)
        chat = getattr(message, "chat", None)
    return chat


@Predicate
def is_private(context: Any) -> bool:
    chat = _chat_of(context)
    return chat is not None and chat.is_private


@Predicate
def is_group(context: Any) -> bool:
    chat = _chat_of(context)
    return chat is not None and chat.is_group


@Predicate
def is_supergroup(context: Any) -> bool:
    chat = _chat_of(context)
    return chat is not None and chat.is_supergroup


@Predicate
def is_channel(context: Any) -> bool:
    chat = _chat_of(context)
    return chat is not None and chat.is_channel
