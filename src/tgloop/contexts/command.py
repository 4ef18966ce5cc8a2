from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .message import EditedTextContext, TextContext

C = TypeVar("C", TextContext, EditedTextContext)


@dataclass(frozen=True, slots=True)
class CommandContext(Generic[C]):
    """A text (or edited text) message that starts with `/command`.

    Attribute access falls through to the wrapped context, so
    `ctx.send_message_in_reply(...)` and `ctx.chat` work directly.
    """

    command: str
    context: C

    @property
    def args(self) -> str:
        """Text after the command token, with surrounding whitespace removed."""
        parts = self.context.text.split(maxsplit=1)
        return parts[1].strip() if len(parts) > 1 else ""

    def __getattr__(self, name: str) -> Any:
        # Guard against recursion while the instance is being unpickled or
        # copied and `context` is not set yet.
        if name == "context":
            raise AttributeError(name)
        return getattr(self.context, name)
