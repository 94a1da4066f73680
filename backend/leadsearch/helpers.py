# backend/leadsearch/helpers.py
from __future__ import annotations

import re
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def leading_int(value: Any) -> Optional[int]:
    """
    Read the integer a search argument starts with.

    Steps:
    1) ints pass through (bools are rejected).
    2) strings are matched against an optional sign followed by digits,
       after leading whitespace; trailing text is ignored ("12abc" -> 12).
    3) anything else, or a string without leading digits, gives None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    m = _LEADING_INT.match(value)
    if not m:
        return None
    return int(m.group(1))


def like_pattern(value: str) -> str:
    """Wrap ``value`` for a substring LIKE match."""
    return f"%{value}%"
