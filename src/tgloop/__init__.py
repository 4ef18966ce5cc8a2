"""Event-dispatch runtime for Telegram bots."""

from .client import Bot
from .event_loop import EventLoop, HandlerKind, Polling, Webhook
from .state import Chats, Messages, StatefulEventLoop

__version__ = "0.1.0"

__all__ = [
    "Bot",
    "Chats",
    "EventLoop",
    "HandlerKind",
    "Messages",
    "Polling",
    "StatefulEventLoop",
    "Webhook",
    "__version__",
]
