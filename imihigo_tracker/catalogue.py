"""
Indicator catalogue: normalise raw indicator and pillar records into one
immutable structure, loaded once per planning cycle.

Curated indicator data describes composite ("dual") indicators three ways:
a ``subIndicatorIds`` map pointing at other catalogue rows, an inline
``subIndicators`` list, or both. `build_catalogue` resolves these once into
``Indicator.children`` so the calculator never has to.

Non-fatal data problems are collected as `CatalogueWarning` records and
logged; only records that cannot describe an indicator at all raise
`CatalogueError`.
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from .config import PILLAR_NAMES
from .models import Indicator, MeasurementType, Pillar, SubIndicator, Targets
from .values import parse_flag

logger = logging.getLogger(__name__)


class CatalogueError(ValueError):
    """Raised when catalogue input cannot describe a usable indicator set."""


@dataclass(frozen=True)
class CatalogueWarning:
    """A non-fatal data-validation finding.

    kind is one of: standalone-dual, diverging-sub-targets,
    missing-sub-indicator, unresolved-sub-indicators, unknown-pillar-indicator,
    duplicate-pillar-indicator.
    """

    kind: str
    indicator_id: str | None
    message: str


def _pick(record: Mapping, *names: str, default: Any = None) -> Any:
    for name in names:
        if name in record and record[name] is not None:
            return record[name]
    return default


@dataclass(frozen=True)
class _RawIndicator:
    id: str
    name: str
    targets: Targets
    measurement_type: MeasurementType
    is_dual: bool
    sub_indicator_ids: tuple[tuple[str, str], ...]
    inline_subs: tuple[Mapping, ...]
    pillar_id: str | None


def _read_indicator(record: Mapping) -> _RawIndicator:
    indicator_id = _pick(record, "id", "indicator_id", "indicatorId")
    if indicator_id is None or str(indicator_id).strip() == "":
        raise CatalogueError(f"Indicator record without an id: {dict(record)!r}")
    indicator_id = str(indicator_id).strip()

    sub_ids = _pick(record, "sub_indicator_ids", "subIndicatorIds", default={}) or {}
    inline = _pick(record, "sub_indicators", "subIndicators", default=[]) or []
    pillar_id = _pick(record, "pillar_id", "pillarId")

    return _RawIndicator(
        id=indicator_id,
        name=str(_pick(record, "name", default=indicator_id)),
        targets=Targets.from_raw(_pick(record, "targets", default={})),
        measurement_type=MeasurementType.parse(
            _pick(record, "measurement_type", "measurementType")
        ),
        is_dual=parse_flag(_pick(record, "is_dual", "isDual", default=False)),
        sub_indicator_ids=tuple((str(k), str(v)) for k, v in dict(sub_ids).items()),
        inline_subs=tuple(inline),
        pillar_id=str(pillar_id) if pillar_id is not None else None,
    )


class Catalogue:
    """Immutable, process-wide indicator reference data."""

    def __init__(
        self,
        indicators: Mapping[str, Indicator],
        pillars: Iterable[Pillar],
        warnings: Iterable[CatalogueWarning] = (),
    ):
        self._indicators = MappingProxyType(dict(indicators))
        self._pillars = tuple(pillars)
        self._pillar_index = {p.id: p for p in self._pillars}
        self.warnings = tuple(warnings)

        numbering: dict[str, int] = {}
        for pillar in self._pillars:
            for indicator_id in pillar.indicator_ids:
                numbering.setdefault(indicator_id, len(numbering) + 1)
        self._numbering = MappingProxyType(numbering)

    def __len__(self) -> int:
        return len(self._indicators)

    def __iter__(self) -> Iterator[Indicator]:
        return iter(self._indicators.values())

    def __contains__(self, indicator_id: object) -> bool:
        return indicator_id in self._indicators

    @property
    def indicators(self) -> Mapping[str, Indicator]:
        return self._indicators

    @property
    def pillars(self) -> tuple[Pillar, ...]:
        return self._pillars

    def get(self, indicator_id: str) -> Indicator | None:
        return self._indicators.get(str(indicator_id))

    def pillar(self, pillar_id: str) -> Pillar | None:
        return self._pillar_index.get(pillar_id)

    def pillar_indicators(self, pillar_id: str) -> list[Indicator]:
        pillar = self.pillar(pillar_id)
        if pillar is None:
            return []
        return [self._indicators[i] for i in pillar.indicator_ids]

    @property
    def total_indicator_count(self) -> int:
        """Indicator count across every pillar (the district-wide denominator)."""
        return sum(len(p.indicator_ids) for p in self._pillars)

    def indicator_number(self, indicator_id: str) -> int:
        """1-based position of a pillar indicator in catalogue order, 0 if absent."""
        return self._numbering.get(str(indicator_id), 0)

    def warnings_for(self, indicator_id: str) -> list[CatalogueWarning]:
        return [w for w in self.warnings if w.indicator_id == indicator_id]


def _resolve_children(
    raw: _RawIndicator,
    raw_index: Mapping[str, _RawIndicator],
    warnings: list[CatalogueWarning],
) -> tuple[tuple[SubIndicator, ...], str | None]:
    children: dict[str, SubIndicator] = {}
    linked_ids = dict(raw.sub_indicator_ids)

    for sub in raw.inline_subs:
        key = _pick(sub, "key")
        if key is None:
            continue
        key = str(key)
        sub_type = _pick(sub, "measurement_type", "measurementType")
        children[key] = SubIndicator(
            key=key,
            name=str(_pick(sub, "name", default=key)),
            targets=Targets.from_raw(_pick(sub, "targets", default={})),
            measurement_type=(
                MeasurementType.parse(sub_type) if sub_type is not None else raw.measurement_type
            ),
            source_id=linked_ids.get(key),
        )

    for key, sub_id in raw.sub_indicator_ids:
        linked = raw_index.get(sub_id)
        if linked is None:
            if key not in children:
                warnings.append(CatalogueWarning(
                    "missing-sub-indicator",
                    raw.id,
                    f"Indicator {raw.id} sub-indicator '{key}' points at unknown id {sub_id}",
                ))
            continue

        if key in children:
            inline = children[key]
            if inline.targets != linked.targets:
                warnings.append(CatalogueWarning(
                    "diverging-sub-targets",
                    raw.id,
                    f"Indicator {raw.id} sub-indicator '{key}' has inline targets "
                    f"{inline.targets.as_dict()} but catalogue row {sub_id} has "
                    f"{linked.targets.as_dict()}; using the inline targets",
                ))
            continue

        children[key] = SubIndicator(
            key=key,
            name=linked.name,
            targets=linked.targets,
            measurement_type=linked.measurement_type,
            source_id=sub_id,
        )

    declared = bool(raw.sub_indicator_ids or raw.inline_subs)
    anomaly = None
    if declared and not children:
        anomaly = f"Indicator {raw.id} declares sub-indicators but none could be resolved"
        warnings.append(CatalogueWarning("unresolved-sub-indicators", raw.id, anomaly))
    elif raw.is_dual and not declared:
        warnings.append(CatalogueWarning(
            "standalone-dual",
            raw.id,
            f"Indicator {raw.id} is marked dual but has no sub-indicators; "
            "scoring it from its own targets",
        ))

    return tuple(children.values()), anomaly


def _read_pillars(
    pillar_records: Iterable[Mapping] | None,
    raw_items: list[_RawIndicator],
) -> list[tuple[str, str, list[str]]]:
    if pillar_records is None:
        # Flat catalogues carry the pillar id on each indicator row
        grouped: dict[str, list[str]] = {}
        for raw in raw_items:
            if raw.pillar_id:
                grouped.setdefault(raw.pillar_id, []).append(raw.id)
        return [(pid, PILLAR_NAMES.get(pid, pid), ids) for pid, ids in grouped.items()]

    pillars = []
    for record in pillar_records:
        pillar_id = _pick(record, "id", "pillar_id", "pillarId")
        if pillar_id is None:
            raise CatalogueError(f"Pillar record without an id: {dict(record)!r}")
        pillar_id = str(pillar_id)
        ids = _pick(record, "indicator_ids", "indicatorIds", "indicators", default=None)
        if ids is None:
            # Nested layout: pillar -> outputs -> indicators
            ids = [
                indicator
                for output in _pick(record, "outputs", default=[])
                for indicator in _pick(output, "indicators", "indicator_ids", default=[])
            ]
        ids = [str(_pick(i, "id") if isinstance(i, Mapping) else i) for i in ids]
        name = str(_pick(record, "name", default=PILLAR_NAMES.get(pillar_id, pillar_id)))
        pillars.append((pillar_id, name, ids))
    return pillars


def build_catalogue(
    indicator_records: Iterable[Mapping],
    pillar_records: Iterable[Mapping] | None = None,
) -> Catalogue:
    """Build a `Catalogue` from raw indicator and pillar records.

    Parameters
    ----------
    indicator_records : Mappings with id, name, targets and the optional
        measurement type, dual flag, sub-indicator ids/inline sub-indicators
        and pillar id. camelCase and snake_case keys are both accepted.
    pillar_records : Mappings with id, name and either ``indicators`` (ids) or
        nested ``outputs[].indicators``. If None, pillars are grouped from each
        indicator's pillar id.

    Raises
    ------
    CatalogueError
        On a record without an id or a duplicated indicator id.
    """
    raw_items = [_read_indicator(r) for r in indicator_records]
    raw_index: dict[str, _RawIndicator] = {}
    for raw in raw_items:
        if raw.id in raw_index:
            raise CatalogueError(f"Duplicate indicator id: {raw.id}")
        raw_index[raw.id] = raw

    warnings: list[CatalogueWarning] = []
    pillars: list[Pillar] = []
    membership: dict[str, str] = {}
    for pillar_id, name, ids in _read_pillars(pillar_records, raw_items):
        kept = []
        for indicator_id in ids:
            if indicator_id not in raw_index:
                warnings.append(CatalogueWarning(
                    "unknown-pillar-indicator",
                    indicator_id,
                    f"Pillar {pillar_id} lists unknown indicator {indicator_id}",
                ))
                continue
            if indicator_id in membership:
                warnings.append(CatalogueWarning(
                    "duplicate-pillar-indicator",
                    indicator_id,
                    f"Indicator {indicator_id} is listed in both {membership[indicator_id]} "
                    f"and {pillar_id}; keeping it in {membership[indicator_id]}",
                ))
                continue
            membership[indicator_id] = pillar_id
            kept.append(indicator_id)
        pillars.append(Pillar(id=pillar_id, name=name, indicator_ids=tuple(kept)))

    indicators: dict[str, Indicator] = {}
    for raw in raw_items:
        children, anomaly = _resolve_children(raw, raw_index, warnings)
        indicators[raw.id] = Indicator(
            id=raw.id,
            name=raw.name,
            targets=raw.targets,
            measurement_type=raw.measurement_type,
            is_dual=raw.is_dual,
            children=children,
            pillar_id=membership.get(raw.id, raw.pillar_id),
            anomaly=anomaly,
        )

    for warning in warnings:
        logger.warning("Catalogue %s: %s", warning.kind, warning.message)

    catalogue = Catalogue(indicators, pillars, warnings)
    logger.info(
        "Built catalogue: %d indicators, %d pillars, %d warnings",
        len(catalogue), len(pillars), len(warnings),
    )
    return catalogue


def indicator_unit(indicator: Indicator) -> str:
    """Display unit label derived from the measurement type and name."""
    name = indicator.name.lower()

    if (
        indicator.measurement_type is MeasurementType.PERCENTAGE
        or re.search(r"\brates?\b", name)
        or "percentage" in name
        or "%" in name
    ):
        return "(%)"
    if "kg" in name or "kilogram" in name:
        return "(Kg)"
    if re.search(r"\b(tons?|tonnes|mt)\b", name):
        return "(Tons)"
    if "hectare" in name or "(ha)" in name or re.search(r"(^|\s)ha(\s|$)", name):
        return "(Ha)"
    return "(N)"
