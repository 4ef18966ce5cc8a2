from .base import Predicate, PredicateFn, and_, evaluate, not_, or_, without_state
from .chat import is_channel, is_group, is_private, is_supergroup
from .media import match_extension
from .message import is_forwarded, is_in_reply

__all__ = [
    "Predicate",
    "PredicateFn",
    "and_",
    "evaluate",
    "is_channel",
    "is_forwarded",
    "is_group",
    "is_in_reply",
    "is_private",
    "is_supergroup",
    "match_extension",
    "not_",
    "or_",
    "without_state",
]
