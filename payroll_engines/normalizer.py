"""
Key normalizer -- canonical form for free-text lookup keys.

Every key is normalized the same way before it is inserted into a code
map and before it is looked up, so "Leisure Ops ", "leisure ops" and
"LEISURE   OPS" all meet at "leisure ops".
"""

from __future__ import annotations

import re
from typing import Any

_WHITESPACE = re.compile(r"\s+")
_NBSP = "\u00a0"


def normalize_key(raw_key: Any) -> str:
    """
    NBSP to space, collapse whitespace runs, trim, lowercase.

    Returns "" for None or whitespace-only input; callers treat that as
    the empty-key condition rather than an error.
    """
    if raw_key is None:
        return ""
    text = str(raw_key).replace(_NBSP, " ")
    return _WHITESPACE.sub(" ", text).strip().lower()


def is_empty_key(raw_key: Any) -> bool:
    return normalize_key(raw_key) == ""
