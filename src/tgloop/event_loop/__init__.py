from .commands import ParsedCommand, parse_command
from .core import EventLoop
from .kinds import HandlerKind
from .polling import Polling
from .webhook import Webhook, create_app

__all__ = [
    "EventLoop",
    "HandlerKind",
    "ParsedCommand",
    "Polling",
    "Webhook",
    "create_app",
    "parse_command",
]
