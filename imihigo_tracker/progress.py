"""
Indicator progress scoring. Every function here is pure.

Turns an indicator definition plus its submitted entries into a capped
0-100 performance for a quarter, a month, or the whole year.

Measurement-type rules
----------------------
- cumulative (default): quarter actual is the max entry (later submissions
  already include earlier progress); target is the running sum of quarter
  targets through the requested quarter.
- percentage: quarter actual is the mean entry (monthly snapshots); target is
  the requested quarter's own target.
- decreasing: quarter actual is the sum of entries; target is the quarter's
  own target and the ratio is inverted (target / actual). Nothing reported
  means fully on target.

A zero target is floored to 1 so that performance becomes actual * 100,
then capped at 100 like every other score.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .config import (
    LEGACY_SUBVALUE_KEYS,
    PERFORMANCE_CAP,
    QUARTER_IDS,
    STATUS_COMPLETED,
    STATUS_ON_TRACK,
    TREND_BANDS,
    TREND_FALLBACK,
)
from .models import Entry, Indicator, MeasurementType, SubIndicator, Targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubIndicatorProgress:
    key: str
    name: str
    source_id: str | None
    total_actual: float
    target: float
    performance: float


@dataclass(frozen=True)
class QuarterProgress:
    total_actual: float
    target: float
    performance: float
    trend: str
    next_target: float = 0.0
    sub_results: tuple[SubIndicatorProgress, ...] = ()
    anomaly: str | None = None

    def as_dict(self) -> dict:
        return {
            "total_actual": self.total_actual,
            "target": self.target,
            "performance": self.performance,
            "trend": self.trend,
            "next_target": self.next_target,
            "sub_results": [vars(s).copy() for s in self.sub_results],
            "anomaly": self.anomaly,
        }


@dataclass(frozen=True)
class AnnualProgress:
    total_actual: float
    target: float
    performance: float
    status: str


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_trend(performance: float) -> str:
    """Return 'on-track', 'improving' or 'needs-attention'."""
    for lower_bound, label in TREND_BANDS:
        if performance >= lower_bound:
            return label
    return TREND_FALLBACK


def classify_status(annual_performance: float) -> str:
    """Return 'completed', 'on-track', 'behind' or 'not-started'."""
    if annual_performance >= STATUS_COMPLETED:
        return "completed"
    if annual_performance >= STATUS_ON_TRACK:
        return "on-track"
    if annual_performance > 0:
        return "behind"
    return "not-started"


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def entries_for_quarter(
    entries: Iterable[Entry],
    quarter_id: str,
    months_in_quarter: Sequence[str] | None = None,
) -> list[Entry]:
    """Non-deleted entries reported for `quarter_id`.

    Entries without a quarter id are matched by month when the quarter's
    months are given.
    """
    months = {m.lower() for m in months_in_quarter or ()}
    selected = []
    for entry in entries:
        if entry.is_deleted:
            continue
        if entry.quarter_id == quarter_id:
            selected.append(entry)
        elif not entry.quarter_id and entry.month and entry.month.lower() in months:
            selected.append(entry)
    return selected


def reduce_actuals(values: Sequence[float], measurement_type: MeasurementType) -> float:
    """Collapse a quarter's reported values into one actual."""
    if not values:
        return 0.0
    if measurement_type is MeasurementType.PERCENTAGE:
        return sum(values) / len(values)
    if measurement_type is MeasurementType.DECREASING:
        return sum(values)
    return max(values)


def quarter_target(targets: Targets, measurement_type: MeasurementType, quarter_id: str) -> float:
    """Target denominator for a quarter, before the zero floor."""
    if measurement_type is MeasurementType.CUMULATIVE:
        return targets.through_quarter(quarter_id)
    return targets.for_quarter(quarter_id)


def score_performance(actual: float, target: float, measurement_type: MeasurementType) -> float:
    """Capped performance for an actual against an already floored target."""
    if measurement_type is MeasurementType.DECREASING:
        performance = (target / actual) * 100 if actual > 0 else 100.0
    else:
        performance = (actual / target) * 100
    # Negative corrections never push a score below zero
    return max(0.0, min(performance, PERFORMANCE_CAP))


def next_quarter_id(quarter_id: str) -> str:
    if quarter_id not in QUARTER_IDS:
        return QUARTER_IDS[-1]
    idx = QUARTER_IDS.index(quarter_id)
    return QUARTER_IDS[min(idx + 1, len(QUARTER_IDS) - 1)]


def _floor_target(target: float) -> float:
    return target if target != 0 else 1.0


def _sub_series(child: SubIndicator, entries: Iterable[Entry]) -> list[float]:
    fallbacks = LEGACY_SUBVALUE_KEYS.get(child.key, [])
    values = []
    for entry in entries:
        if child.source_id is not None and entry.indicator_id == child.source_id:
            values.append(entry.value)
            continue
        val = entry.sub_value(child.key, fallbacks)
        if val is not None:
            values.append(val)
    return values


# ---------------------------------------------------------------------------
# Quarter progress
# ---------------------------------------------------------------------------

def calculate_quarter_progress(
    indicator: Indicator,
    entries: Iterable[Entry],
    quarter_id: str,
    months_in_quarter: Sequence[str] | None = None,
) -> QuarterProgress:
    """Score one indicator's own targets and values for one quarter.

    Composite indicators are scored through
    `calculate_composite_quarter_progress`; use `score_indicator_quarter` to
    dispatch on the indicator's kind.
    """
    measurement_type = indicator.measurement_type
    quarter_entries = entries_for_quarter(entries, quarter_id, months_in_quarter)

    total_actual = reduce_actuals([e.value for e in quarter_entries], measurement_type)
    target = _floor_target(quarter_target(indicator.targets, measurement_type, quarter_id))
    performance = score_performance(total_actual, target, measurement_type)

    return QuarterProgress(
        total_actual=total_actual,
        target=target,
        performance=performance,
        trend=classify_trend(performance),
        next_target=indicator.targets.for_quarter(next_quarter_id(quarter_id)),
    )


def calculate_composite_quarter_progress(
    indicator: Indicator,
    entries: Iterable[Entry],
    quarter_id: str,
    months_in_quarter: Sequence[str] | None = None,
) -> QuarterProgress:
    """Score a composite indicator as the mean of its capped children.

    Each child uses its own targets and measurement type; its actual series is
    the parent entries' sub-values under the child's key (or the value of
    entries filed directly against the child's catalogue id).
    """
    quarter_entries = entries_for_quarter(entries, quarter_id, months_in_quarter)

    results = []
    for child in indicator.children:
        actual = reduce_actuals(_sub_series(child, quarter_entries), child.measurement_type)
        target = _floor_target(quarter_target(child.targets, child.measurement_type, quarter_id))
        results.append(SubIndicatorProgress(
            key=child.key,
            name=child.name,
            source_id=child.source_id,
            total_actual=actual,
            target=target,
            performance=score_performance(actual, target, child.measurement_type),
        ))

    if not results:
        return calculate_quarter_progress(indicator, entries, quarter_id, months_in_quarter)

    performance = sum(r.performance for r in results) / len(results)
    return QuarterProgress(
        total_actual=sum(r.total_actual for r in results),
        target=sum(r.target for r in results),
        performance=performance,
        trend=classify_trend(performance),
        next_target=sum(
            c.targets.for_quarter(next_quarter_id(quarter_id)) for c in indicator.children
        ),
        sub_results=tuple(results),
    )


def score_indicator_quarter(
    indicator: Indicator,
    entries: Iterable[Entry],
    quarter_id: str,
    months_in_quarter: Sequence[str] | None = None,
) -> QuarterProgress:
    """Quarter progress for any indicator kind.

    An indicator whose declared children could not be resolved scores 0 and
    carries the anomaly message.
    """
    if indicator.anomaly:
        logger.warning("Scoring %s as 0: %s", indicator.id, indicator.anomaly)
        return QuarterProgress(
            total_actual=0.0,
            target=1.0,
            performance=0.0,
            trend=classify_trend(0.0),
            anomaly=indicator.anomaly,
        )
    if indicator.children:
        return calculate_composite_quarter_progress(
            indicator, entries, quarter_id, months_in_quarter
        )
    return calculate_quarter_progress(indicator, entries, quarter_id, months_in_quarter)


# ---------------------------------------------------------------------------
# Annual and monthly progress
# ---------------------------------------------------------------------------

def _annual_score(
    values: Sequence[float],
    targets: Targets,
    measurement_type: MeasurementType,
) -> tuple[float, float, float]:
    actual = reduce_actuals(values, measurement_type)
    target = targets.annual
    if target == 0:
        return actual, target, 0.0
    return actual, target, score_performance(actual, target, measurement_type)


def calculate_annual_progress(indicator: Indicator, entries: Iterable[Entry]) -> AnnualProgress:
    """Score all of an indicator's entries against its annual target.

    The per-type reduction matches the quarter rules. An indicator without an
    annual target scores 0. Composite indicators average the capped annual
    scores of the children that have an annual target.
    """
    live = [e for e in entries if not e.is_deleted]

    if indicator.anomaly:
        return AnnualProgress(0.0, 0.0, 0.0, classify_status(0.0))

    if indicator.children:
        actual_sum = target_sum = 0.0
        scores = []
        for child in indicator.children:
            actual, target, performance = _annual_score(
                _sub_series(child, live), child.targets, child.measurement_type
            )
            actual_sum += actual
            target_sum += target
            if target > 0:
                scores.append(performance)
        performance = sum(scores) / len(scores) if scores else 0.0
        return AnnualProgress(actual_sum, target_sum, performance, classify_status(performance))

    actual, target, performance = _annual_score(
        [e.value for e in live], indicator.targets, indicator.measurement_type
    )
    return AnnualProgress(actual, target, performance, classify_status(performance))


def calculate_monthly_progress(indicator: Indicator, value: float, quarter_id: str) -> float:
    """Score a single monthly value against its quarter's denominator.

    Unlike the quarter score there is no zero floor: a month with no target
    scores 0, and a decreasing indicator with nothing reported scores 0.
    """
    target = quarter_target(indicator.targets, indicator.measurement_type, quarter_id)
    if target == 0:
        return 0.0
    if indicator.measurement_type is MeasurementType.DECREASING:
        return min((target / value) * 100, PERFORMANCE_CAP) if value else 0.0
    return min((value / target) * 100, PERFORMANCE_CAP)
