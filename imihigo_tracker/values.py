"""
Value normalisation for curated target sheets and submitted actuals.
"""

import math
import re
from typing import Any

from .config import PLACEHOLDER_TARGET

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_FLOAT = re.compile(r"^\d*\.?\d+|^\d+\.?")


def parse_value(val: Any) -> float:
    """Parse a stored target or actual into a plain number.

    Curated target sheets mix numbers, percentage strings ("80%"),
    thousands-separated strings ("1,000") and placeholders ("-"). Anything
    that cannot be read is treated as 0; this function never raises.

    >>> parse_value("62%"), parse_value("1,000"), parse_value("-")
    (62.0, 1000.0, 0.0)
    """
    if val is None or (isinstance(val, str) and val == PLACEHOLDER_TARGET):
        return 0.0
    if isinstance(val, bool):
        return float(val)
    if isinstance(val, (int, float)):
        if isinstance(val, float) and math.isnan(val):
            return 0.0
        return val
    cleaned = _NON_NUMERIC.sub("", str(val))
    # Lenient prefix parse: "1.2.3" reads as 1.2
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0
    number = float(match.group(0))
    if not math.isfinite(number):
        return 0.0
    return number


def parse_flag(val: Any) -> bool:
    """Read a boolean flag written as bool, number or text."""
    if val is None:
        return False
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return not math.isnan(val) and val != 0
    return str(val).strip().lower() in {"true", "yes", "y", "1"}
