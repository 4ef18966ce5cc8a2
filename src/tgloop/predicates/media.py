from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any

from .base import Predicate


def match_extension(extensions: Iterable[str]) -> Predicate:
    """Match documents whose file name ends with one of `extensions`.

    Extensions are given without the leading dot and compared
    case-sensitively. Contexts without a named document never match.
    """
    allowed = frozenset(ext.lstrip(".") for ext in extensions)

    def matches(context: Any) -> bool:
        document = getattr(context, "document", None)
        file_name = getattr(document, "file_name", None)
        if not file_name:
            return False
        suffix = PurePosixPath(file_name).suffix
        return bool(suffix) and suffix[1:] in allowed

    return Predicate(matches)
