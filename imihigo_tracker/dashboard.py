"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end. Each function
takes the catalogue and the submitted entries and returns a DataFrame or a
plain list suitable for rendering cards, charts and tables.
"""

import logging
from typing import Iterable

import pandas as pd

from .aggregation import (
    calculate_district_progress,
    calculate_pillar_progress,
    group_entries,
    indicator_entries,
)
from .catalogue import Catalogue, indicator_unit
from .config import QUARTER_IDS, QUARTERS, ROUND_DIGITS
from .loaders.utils import quarter_for_month
from .models import Entry
from .progress import (
    calculate_annual_progress,
    classify_trend,
    score_indicator_quarter,
)

logger = logging.getLogger(__name__)

PILLAR_COLUMNS = [
    "pillar_id", "pillar_name", "quarter_id", "pillar_progress", "annual_progress",
    "indicator_sum", "pillar_indicator_count", "total_indicators_across_all_pillars", "error",
]

INDICATOR_COLUMNS = [
    "number", "indicator_id", "indicator", "unit", "measurement_type", "target",
    "actual", "performance", "trend", "next_target", "annual_target", "annual_actual",
    "annual_performance", "status", "anomaly",
]


def get_pillar_overview(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    quarter_id: str | None = None,
    pillars: Iterable | None = None,
) -> pd.DataFrame:
    """Pillar progress rows for the overview page.

    Parameters
    ----------
    quarter_id : 'q1'..'q4', or None for every quarter.
    pillars : Persisted pillar records; defaults to the catalogue's pillars.
    """
    rows = calculate_pillar_progress(pillars, catalogue, entries, quarter_id)
    return pd.DataFrame(rows, columns=PILLAR_COLUMNS)


def get_district_summary(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    quarter_id: str | None = None,
) -> pd.DataFrame:
    """District-wide progress per quarter.

    Scored from the unrounded indicator sums of every pillar, so the result
    can differ from adding up the rounded per-pillar annual_progress values.

    Returns
    -------
    DataFrame with columns: quarter_id, district_progress, trend
    """
    entries = list(entries)
    quarter_ids = list(QUARTER_IDS) if quarter_id is None else [quarter_id]
    rows = [
        {"quarter_id": qid, "district_progress": calculate_district_progress(catalogue, entries, qid)}
        for qid in quarter_ids
    ]
    summary = pd.DataFrame(rows, columns=["quarter_id", "district_progress"])
    summary["trend"] = summary["district_progress"].apply(classify_trend)
    return summary


def get_indicator_progress_table(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    pillar_id: str,
    quarter_id: str,
) -> pd.DataFrame:
    """One row per indicator of a pillar: quarter and annual progress.

    Returns
    -------
    DataFrame with columns:
        number, indicator_id, indicator, unit, measurement_type, target,
        actual, performance, trend, next_target, annual_target,
        annual_actual, annual_performance, status, anomaly
    """
    indicators = catalogue.pillar_indicators(pillar_id)
    if not indicators:
        logger.warning("No indicators for pillar '%s'", pillar_id)
        return pd.DataFrame(columns=INDICATOR_COLUMNS)

    grouped = group_entries(entries)
    months = QUARTERS.get(quarter_id, {}).get("months")
    rows = []

    for indicator in indicators:
        own_entries = indicator_entries(indicator, grouped)
        quarter = score_indicator_quarter(indicator, own_entries, quarter_id, months)
        annual = calculate_annual_progress(indicator, own_entries)
        rows.append({
            "number": catalogue.indicator_number(indicator.id),
            "indicator_id": indicator.id,
            "indicator": indicator.name,
            "unit": indicator_unit(indicator),
            "measurement_type": indicator.measurement_type.value,
            "target": quarter.target,
            "actual": round(quarter.total_actual, ROUND_DIGITS),
            "performance": round(quarter.performance, ROUND_DIGITS),
            "trend": quarter.trend,
            "next_target": quarter.next_target,
            "annual_target": annual.target,
            "annual_actual": round(annual.total_actual, ROUND_DIGITS),
            "annual_performance": round(annual.performance, ROUND_DIGITS),
            "status": annual.status,
            "anomaly": quarter.anomaly,
        })

    return pd.DataFrame(rows, columns=INDICATOR_COLUMNS)


def get_sub_indicator_breakdown(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    indicator_id: str,
    quarter_id: str,
) -> pd.DataFrame:
    """Per-child results for a composite indicator; empty for simple ones."""
    columns = ["key", "name", "source_id", "total_actual", "target", "performance"]
    indicator = catalogue.get(indicator_id)
    if indicator is None or not indicator.children:
        return pd.DataFrame(columns=columns)

    own_entries = indicator_entries(indicator, group_entries(entries))
    result = score_indicator_quarter(
        indicator, own_entries, quarter_id, QUARTERS.get(quarter_id, {}).get("months")
    )
    return pd.DataFrame([vars(s) for s in result.sub_results], columns=columns)


def get_available_quarters(entries: Iterable[Entry]) -> list[str]:
    """Quarter ids that have at least one live entry, in fiscal order."""
    present = set()
    for entry in entries:
        if entry.is_deleted:
            continue
        present.add(entry.quarter_id or quarter_for_month(entry.month))
    return [q for q in QUARTER_IDS if q in present]
