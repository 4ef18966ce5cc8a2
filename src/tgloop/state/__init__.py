from .chats import Chats
from .messages import MessageId, Messages
from .stateful import StatefulEventLoop

__all__ = ["Chats", "MessageId", "Messages", "StatefulEventLoop"]
