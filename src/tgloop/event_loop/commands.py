from __future__ import annotations

from dataclasses import dataclass

from ..types import MessageEntity


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    name: str
    username: str | None = None


def parse_command(
    text: str, entities: list[MessageEntity] | None = None
) -> ParsedCommand | None:
    """Split `/name@username rest` into its command parts.

    When the message carries entities, the first one must be a
    `bot_command` at offset 0. Messages without entities fall back to the
    leading `/`.
    """
    if entities:
        first = entities[0]
        if first.type != "bot_command" or first.offset != 0:
            return None
    elif not text.startswith("/"):
        return None
    parts = text.split(maxsplit=1)
    if not parts or not parts[0].startswith("/"):
        return None
    name, _, username = parts[0][1:].partition("@")
    if not name:
        return None
    return ParsedCommand(name=name, username=username or None)
