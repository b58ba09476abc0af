"""
Value types for the indicator catalogue and submitted entries.

All types are frozen: the calculation engine reads and reduces them but never
mutates what the caller hands in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import QUARTER_IDS
from .values import parse_value


class MeasurementType(str, Enum):
    CUMULATIVE = "cumulative"
    PERCENTAGE = "percentage"
    DECREASING = "decreasing"

    @classmethod
    def parse(cls, val: Any) -> "MeasurementType":
        """Unknown or missing types fall back to cumulative."""
        if isinstance(val, cls):
            return val
        try:
            return cls(str(val).strip().lower())
        except ValueError:
            return cls.CUMULATIVE


class IndicatorKind(str, Enum):
    SIMPLE = "simple"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class Targets:
    """Parsed per-quarter and annual targets.

    `raw` keeps the curated representation ("80%", "1,000", "-") for display.
    """

    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0
    q4: float = 0.0
    annual: float = 0.0
    raw: dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_raw(cls, raw: dict | None) -> "Targets":
        raw = dict(raw or {})
        return cls(
            q1=parse_value(raw.get("q1")),
            q2=parse_value(raw.get("q2")),
            q3=parse_value(raw.get("q3")),
            q4=parse_value(raw.get("q4")),
            annual=parse_value(raw.get("annual")),
            raw=raw,
        )

    def for_quarter(self, quarter_id: str) -> float:
        if quarter_id not in QUARTER_IDS:
            return 0.0
        return getattr(self, quarter_id)

    def through_quarter(self, quarter_id: str) -> float:
        """Running sum of quarter targets up to and including `quarter_id`."""
        if quarter_id not in QUARTER_IDS:
            return 0.0
        upto = QUARTER_IDS.index(quarter_id) + 1
        return sum(getattr(self, q) for q in QUARTER_IDS[:upto])

    def as_dict(self) -> dict[str, float]:
        return {q: getattr(self, q) for q in (*QUARTER_IDS, "annual")}


@dataclass(frozen=True)
class SubIndicator:
    """A named child of a composite indicator.

    `key` is the name used in an entry's `sub_values`; `source_id` is the
    catalogue id the child was resolved from, if any.
    """

    key: str
    name: str
    targets: Targets
    measurement_type: MeasurementType = MeasurementType.CUMULATIVE
    source_id: str | None = None


@dataclass(frozen=True)
class Indicator:
    id: str
    name: str
    targets: Targets
    measurement_type: MeasurementType = MeasurementType.CUMULATIVE
    is_dual: bool = False
    children: tuple[SubIndicator, ...] = ()
    pillar_id: str | None = None
    # Set when a dual indicator declared children that could not be resolved
    anomaly: str | None = None

    @property
    def kind(self) -> IndicatorKind:
        if self.children:
            return IndicatorKind.COMPOSITE
        return IndicatorKind.SIMPLE

    @property
    def is_standalone_dual(self) -> bool:
        return self.is_dual and not self.children and self.anomaly is None


@dataclass(frozen=True)
class Pillar:
    id: str
    name: str
    indicator_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Entry:
    """One submitted observation for an indicator in a month."""

    indicator_id: str
    quarter_id: str
    value: float = 0.0
    month: str | None = None
    sub_values: tuple[tuple[str, float], ...] = ()
    is_deleted: bool = False

    @classmethod
    def create(
        cls,
        indicator_id: str,
        quarter_id: str,
        value: float = 0.0,
        month: str | None = None,
        sub_values: dict | None = None,
        is_deleted: bool = False,
    ) -> "Entry":
        return cls(
            indicator_id=str(indicator_id),
            quarter_id=quarter_id,
            value=parse_value(value),
            month=month,
            sub_values=tuple((str(k), parse_value(v)) for k, v in (sub_values or {}).items()),
            is_deleted=is_deleted,
        )

    def sub_value(self, key: str, fallbacks: list[str] | None = None) -> float | None:
        """Return the sub-value stored under `key`, then under any fallback key."""
        stored = dict(self.sub_values)
        for candidate in [key, *(fallbacks or [])]:
            if candidate in stored:
                return stored[candidate]
        return None
