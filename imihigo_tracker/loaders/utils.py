"""
Shared utilities for data ingestion: quarter lookup, sub-value decoding,
header detection, column renaming.
"""

import json
import logging
import math
import re
from typing import Any

from ..config import MONTH_TO_QUARTER, QUARTER_IDS
from ..values import parse_value

logger = logging.getLogger(__name__)


def normalise_quarter_id(val: Any) -> str | None:
    """Return 'q1'..'q4' for values like 'Q2', 'q2', 2 or 'Quarter 2'."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return None
    s = str(val).strip().lower()
    if s in QUARTER_IDS:
        return s
    digits = re.sub(r"[^1-4]", "", s)
    if len(digits) == 1:
        return f"q{digits}"
    logger.warning("Could not parse quarter value: %s", val)
    return None


def quarter_for_month(month: Any) -> str | None:
    """Map a month name or abbreviation to its fiscal quarter id."""
    if month is None:
        return None
    s = str(month).strip().lower()
    if not s:
        return None
    if s in MONTH_TO_QUARTER:
        return MONTH_TO_QUARTER[s]
    for name, quarter_id in MONTH_TO_QUARTER.items():
        if len(s) >= 3 and name.startswith(s[:3]):
            return quarter_id
    return None


def parse_sub_values(val: Any) -> dict[str, float]:
    """Coerce a stored sub-value mapping (dict or JSON text) to floats."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return {}
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return {}
        try:
            val = json.loads(val)
        except json.JSONDecodeError:
            logger.warning("Could not decode sub values: %s", val)
            return {}
    if not isinstance(val, dict):
        logger.warning("Ignoring sub values of type %s", type(val).__name__)
        return {}
    return {str(key): parse_value(v) for key, v in val.items()}


def to_snake_case(name: str) -> str:
    """Convert a column name to snake_case.

    Handles spaces, parentheses, slashes, percent signs and camelCase keys
    exported by the submission service (``indicatorId`` -> ``indicator_id``).
    """
    s = str(name).strip()
    s = s.replace("%", "pct").replace("/", "_per_").replace("(", "").replace(")", "")
    s = s.replace("-", "_").replace(".", "_")
    # CamelCase to snake_case before symbols collapse the boundaries
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s)
    s = re.sub(r"[^a-zA-Z0-9:]+", "_", s)
    s = s.lower().strip("_")
    s = re.sub(r"_+", "_", s)
    return s


def find_header_row(
    sheet,
    signature: set[str],
    max_rows: int = 20,
) -> int | None:
    """Scan an openpyxl sheet for the row containing signature strings.

    Returns the 1-based row index where at least two cells match values
    in `signature` (case-insensitive), or None if not found within `max_rows`.
    """
    wanted = {s.lower() for s in signature}
    for row_idx in range(1, max_rows + 1):
        matches = 0
        for cell in sheet[row_idx]:
            if cell.value is not None and str(cell.value).strip().lower() in wanted:
                matches += 1
        if matches >= 2:
            return row_idx
    return None


def normalise_id(val: Any) -> str | None:
    """Indicator ids as text; spreadsheet floats like 3.0 become '3'."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return None
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    s = str(val).strip()
    return s or None
