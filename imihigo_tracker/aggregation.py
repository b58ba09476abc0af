"""
Pillar and district aggregation of per-indicator quarter progress.

For each pillar and quarter the capped performance of every pillar indicator
is summed into `indicator_sum`, then normalised two ways:

- pillar_progress = indicator_sum / pillar_indicator_count
- annual_progress = indicator_sum / total_indicators_across_all_pillars

The second figure is each pillar's share of one district-wide score, so the
pillars' unrounded annual_progress values add up to the district progress.
Indicators without entries score 0 and stay in both denominators. Rounding
to two decimals happens only on the returned rows.
"""

import logging
from typing import Iterable, Mapping

from .catalogue import Catalogue
from .config import QUARTER_IDS, QUARTERS, ROUND_DIGITS
from .models import Entry, Indicator, Pillar
from .progress import score_indicator_quarter

logger = logging.getLogger(__name__)


def group_entries(entries: Iterable[Entry]) -> dict[str, list[Entry]]:
    """Index non-deleted entries by indicator id."""
    grouped: dict[str, list[Entry]] = {}
    for entry in entries:
        if entry.is_deleted:
            continue
        grouped.setdefault(entry.indicator_id, []).append(entry)
    return grouped


def indicator_entries(indicator: Indicator, grouped: Mapping[str, list[Entry]]) -> list[Entry]:
    """Entries filed against the indicator or against any of its children's ids."""
    selected = list(grouped.get(indicator.id, []))
    for child in indicator.children:
        if child.source_id and child.source_id != indicator.id:
            selected.extend(grouped.get(child.source_id, []))
    return selected


def _pillar_identity(record) -> tuple[str, str]:
    if isinstance(record, Pillar):
        return record.id, record.name
    pillar_id = record.get("id", record.get("pillar_id", record.get("pillarId")))
    return str(pillar_id), str(record.get("name", record.get("pillar_name", pillar_id)))


def _indicator_sum(
    indicators: list[Indicator],
    grouped: Mapping[str, list[Entry]],
    quarter_id: str,
) -> float:
    months = QUARTERS.get(quarter_id, {}).get("months")
    return sum(
        score_indicator_quarter(
            indicator, indicator_entries(indicator, grouped), quarter_id, months
        ).performance
        for indicator in indicators
    )


def _degraded_row(
    pillar_id: str,
    pillar_name: str,
    quarter_id: str | None,
    total: int,
    message: str,
    count: int = 0,
) -> dict:
    return {
        "pillar_id": pillar_id,
        "pillar_name": pillar_name,
        "quarter_id": quarter_id,
        "progress": 0.0,
        "pillar_progress": 0.0,
        "annual_progress": 0.0,
        "indicator_sum": 0.0,
        "pillar_indicator_count": count,
        "total_indicators_across_all_pillars": total,
        "error": message,
    }


def _pillar_row(
    pillar_id: str,
    pillar_name: str,
    quarter_id: str,
    indicators: list[Indicator],
    grouped: Mapping[str, list[Entry]],
    total: int,
) -> dict:
    count = len(indicators)
    indicator_sum = _indicator_sum(indicators, grouped, quarter_id)

    pillar_progress = round(indicator_sum / count if count else 0.0, ROUND_DIGITS)
    annual_progress = indicator_sum / total if total else 0.0

    return {
        "pillar_id": pillar_id,
        "pillar_name": pillar_name,
        "quarter_id": quarter_id,
        "progress": pillar_progress,
        "pillar_progress": pillar_progress,
        "annual_progress": round(annual_progress, ROUND_DIGITS),
        "indicator_sum": round(indicator_sum, ROUND_DIGITS),
        "pillar_indicator_count": count,
        "total_indicators_across_all_pillars": total,
        "error": None,
    }


def calculate_pillar_progress(
    pillars: Iterable | None,
    catalogue: Catalogue,
    entries: Iterable[Entry],
    quarter_id: str | None = None,
) -> list[dict]:
    """Return one progress row per pillar per requested quarter.

    Parameters
    ----------
    pillars : Persisted pillar records (mappings with id and name, or `Pillar`
        objects). None means every pillar in the catalogue.
    catalogue : The indicator catalogue supplying each pillar's indicators.
    entries : Submitted entries; soft-deleted entries are ignored.
    quarter_id : 'q1'..'q4', or None for one row per quarter.

    Each row carries ``progress`` as an alias of ``pillar_progress``. A pillar
    record without a catalogue definition, or whose scoring fails, yields a
    row with zero progress and an ``error`` message; the other pillars are
    unaffected.
    """
    if pillars is None:
        pillars = catalogue.pillars
    quarter_ids = list(QUARTER_IDS) if quarter_id is None else [quarter_id]
    grouped = group_entries(entries)
    total = catalogue.total_indicator_count

    rows = []
    for record in pillars:
        pillar_id, pillar_name = _pillar_identity(record)

        if catalogue.pillar(pillar_id) is None:
            message = f"No catalogue definition for pillar '{pillar_id}'"
            logger.warning("%s; returning zero rows", message)
            rows.extend(_degraded_row(pillar_id, pillar_name, qid, total, message) for qid in quarter_ids)
            continue

        indicators = catalogue.pillar_indicators(pillar_id)
        for qid in quarter_ids:
            try:
                rows.append(_pillar_row(pillar_id, pillar_name, qid, indicators, grouped, total))
            except Exception as exc:
                logger.exception("Failed to score pillar '%s' for %s", pillar_id, qid)
                message = f"Failed to score pillar '{pillar_id}': {exc}"
                rows.append(_degraded_row(pillar_id, pillar_name, qid, total, message, len(indicators)))

    logger.info("Computed %d pillar progress rows", len(rows))
    return rows


def calculate_district_progress(
    catalogue: Catalogue,
    entries: Iterable[Entry],
    quarter_id: str,
) -> float:
    """District-wide completion for a quarter: every pillar's indicator sum
    over the global indicator count, rounded once at the end."""
    total = catalogue.total_indicator_count
    if not total:
        return 0.0
    grouped = group_entries(entries)
    indicator_sum = sum(
        _indicator_sum(catalogue.pillar_indicators(p.id), grouped, quarter_id)
        for p in catalogue.pillars
    )
    return round(indicator_sum / total, ROUND_DIGITS)
