"""
Configuration: reporting calendar, scoring bands, file paths, constants.

The fiscal year runs July to June, so Q1 starts in July. Trend and status
bands are expressed in percentage points of capped performance (0-100).
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths (catalogue workbook and submissions export sit beside the package)
# ---------------------------------------------------------------------------
PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR.parent

CATALOGUE_FILE = PACKAGE_DIR / "data" / "catalogue.json"
CATALOGUE_WORKBOOK_FILE = DATA_DIR / "Imihigo targets.xlsx"
SUBMISSIONS_FILE = DATA_DIR / "submissions.csv"

# ---------------------------------------------------------------------------
# District identity
# ---------------------------------------------------------------------------
DISTRICT_NAME = "Rwamagana District"

# ---------------------------------------------------------------------------
# Reporting calendar
# ---------------------------------------------------------------------------
QUARTER_IDS = ("q1", "q2", "q3", "q4")

QUARTERS: dict[str, dict] = {
    "q1": {"name": "Quarter 1", "months": ["July", "August", "September"]},
    "q2": {"name": "Quarter 2", "months": ["October", "November", "December"]},
    "q3": {"name": "Quarter 3", "months": ["January", "February", "March"]},
    "q4": {"name": "Quarter 4", "months": ["April", "May", "June"]},
}

# Month (full name, lower case) -> quarter id
MONTH_TO_QUARTER: dict[str, str] = {
    month.lower(): quarter_id
    for quarter_id, quarter in QUARTERS.items()
    for month in quarter["months"]
}

# ---------------------------------------------------------------------------
# Measurement types
# ---------------------------------------------------------------------------
# cumulative: actuals already include prior months -> max; running-sum target
# percentage: monthly snapshots -> mean; quarter-local target
# decreasing: countable reductions -> sum; quarter-local target, inverted ratio
MEASUREMENT_TYPES = ("cumulative", "percentage", "decreasing")
DEFAULT_MEASUREMENT_TYPE = "cumulative"

# ---------------------------------------------------------------------------
# Scoring bands
# ---------------------------------------------------------------------------
PERFORMANCE_CAP = 100.0

# (lower bound, label), checked top-down
TREND_BANDS = (
    (90.0, "on-track"),
    (50.0, "improving"),
)
TREND_FALLBACK = "needs-attention"

STATUS_COMPLETED = 100.0
STATUS_ON_TRACK = 75.0

# ---------------------------------------------------------------------------
# Sub-value keys
# ---------------------------------------------------------------------------
# Older submissions stored some composite values under different keys.
# canonical key -> keys to try, in order
LEGACY_SUBVALUE_KEYS: dict[str, list[str]] = {
    "chicken": ["poultry", "chicken"],
    "maize": ["maize_kg", "maize"],
    "soya": ["soya_kg", "soya"],
    "lsd": ["lsd", "bq"],
}

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
PLACEHOLDER_TARGET = "-"
ROUND_DIGITS = 2

# ---------------------------------------------------------------------------
# Pillars
# ---------------------------------------------------------------------------
# Used when a catalogue only carries a pillar id on each indicator
PILLAR_NAMES: dict[str, str] = {
    "economic": "Economic Transformation Pillar",
    "social": "Social Transformation Pillar",
    "governance": "Transformational Governance Pillar",
}
