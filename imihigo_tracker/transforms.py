"""
Data transforms: clean raw submission exports into an entries fact table,
and flatten the catalogue and computed progress into dashboard-ready
dimension and fact tables.
"""

import logging
from typing import Iterable

import pandas as pd

from .aggregation import group_entries, indicator_entries
from .catalogue import Catalogue, indicator_unit
from .config import QUARTER_IDS, QUARTERS
from .loaders.utils import (
    normalise_id,
    normalise_quarter_id,
    parse_sub_values,
    quarter_for_month,
)
from .models import Entry
from .progress import score_indicator_quarter
from .values import parse_flag, parse_value

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = ["indicator_id", "quarter_id", "month", "value", "sub_values"]

_SUB_PREFIX = "sub:"


def _text(val) -> str | None:
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return None
    s = str(val).strip()
    return s or None


def build_fact_entries(submissions_df: pd.DataFrame) -> pd.DataFrame:
    """Clean a raw submissions export into one row per live entry.

    Parameters
    ----------
    submissions_df : Raw DataFrame from load_submissions() or
        generate_submissions(), with snake_case columns.

    Returns
    -------
    fact_entries DataFrame with columns:
        indicator_id, quarter_id, month, value, sub_values

    Soft-deleted rows are dropped. A missing quarter id is derived from the
    month on the July-June fiscal calendar; rows with neither are dropped
    with a warning. Sub-values come from a JSON ``sub_values`` column and/or
    ``sub:<key>`` columns (the latter win on conflict).
    """
    if submissions_df.empty or "indicator_id" not in submissions_df.columns:
        logger.warning("No submission rows to build fact_entries from")
        return pd.DataFrame(columns=ENTRY_COLUMNS)

    sub_cols = [c for c in submissions_df.columns if str(c).startswith(_SUB_PREFIX)]
    rows = []
    skipped = 0

    for _, row in submissions_df.iterrows():
        if parse_flag(row.get("is_deleted")):
            continue

        indicator_id = normalise_id(row.get("indicator_id"))
        if indicator_id is None:
            skipped += 1
            continue

        month = _text(row.get("month"))
        raw_quarter = _text(row.get("quarter_id"))
        quarter_id = normalise_quarter_id(raw_quarter) if raw_quarter else None
        if quarter_id is None:
            quarter_id = quarter_for_month(month)
        if quarter_id is None:
            logger.warning("Entry for %s has no quarter or month; skipping", indicator_id)
            skipped += 1
            continue

        sub_values = parse_sub_values(row.get("sub_values"))
        for col in sub_cols:
            cell = row.get(col)
            if _text(cell) is not None:
                sub_values[col[len(_SUB_PREFIX):]] = parse_value(cell)

        rows.append({
            "indicator_id": indicator_id,
            "quarter_id": quarter_id,
            "month": month,
            "value": parse_value(row.get("value")),
            "sub_values": sub_values,
        })

    if skipped:
        logger.warning("Skipped %d unusable submission rows", skipped)

    df = pd.DataFrame(rows, columns=ENTRY_COLUMNS)
    logger.info("Built fact_entries with %d rows", len(df))
    return df


def entries_from_frame(fact_entries: pd.DataFrame) -> tuple[Entry, ...]:
    """Turn a fact_entries DataFrame into immutable `Entry` values."""
    return tuple(
        Entry.create(
            indicator_id=row.indicator_id,
            quarter_id=row.quarter_id,
            value=row.value,
            month=row.month,
            sub_values=row.sub_values if isinstance(row.sub_values, dict) else None,
        )
        for row in fact_entries.itertuples(index=False)
    )


def build_dim_indicator(catalogue: Catalogue) -> pd.DataFrame:
    """One row per pillar indicator, numbered in catalogue order.

    Returns
    -------
    dim_indicator DataFrame with columns:
        number, indicator_id, indicator_name, pillar_id, kind,
        measurement_type, unit, is_dual, sub_indicator_count,
        q1, q2, q3, q4, annual
    """
    rows = []
    for pillar in catalogue.pillars:
        for indicator in catalogue.pillar_indicators(pillar.id):
            rows.append({
                "number": catalogue.indicator_number(indicator.id),
                "indicator_id": indicator.id,
                "indicator_name": indicator.name,
                "pillar_id": pillar.id,
                "kind": indicator.kind.value,
                "measurement_type": indicator.measurement_type.value,
                "unit": indicator_unit(indicator),
                "is_dual": indicator.is_dual,
                "sub_indicator_count": len(indicator.children),
                **indicator.targets.as_dict(),
            })

    df = pd.DataFrame(rows)
    logger.info("Built dim_indicator with %d rows", len(df))
    return df


def build_fact_indicator_progress(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    quarter_ids: Iterable[str] = QUARTER_IDS,
) -> pd.DataFrame:
    """Quarter progress for every pillar indicator, in long format.

    Returns
    -------
    fact_indicator_progress DataFrame with columns:
        pillar_id, indicator_id, quarter_id, total_actual, target,
        performance, trend, next_target, anomaly
    """
    grouped = group_entries(entries)
    rows = []

    for pillar in catalogue.pillars:
        for indicator in catalogue.pillar_indicators(pillar.id):
            own_entries = indicator_entries(indicator, grouped)
            for qid in quarter_ids:
                result = score_indicator_quarter(
                    indicator, own_entries, qid, QUARTERS.get(qid, {}).get("months")
                )
                rows.append({
                    "pillar_id": pillar.id,
                    "indicator_id": indicator.id,
                    "quarter_id": qid,
                    "total_actual": result.total_actual,
                    "target": result.target,
                    "performance": result.performance,
                    "trend": result.trend,
                    "next_target": result.next_target,
                    "anomaly": result.anomaly,
                })

    df = pd.DataFrame(rows)
    logger.info("Built fact_indicator_progress with %d rows", len(df))
    return df
