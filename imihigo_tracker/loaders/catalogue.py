"""
Loaders for the indicator catalogue.

Two sources are supported:

- JSON: ``{"indicators": [...], "pillars": [...]}`` in the shape exported by
  the submission service (camelCase keys), or a bare list of indicators that
  each carry a ``pillarId``.
- Excel: an ``Indicators`` sheet maintained by the planning office, one row
  per indicator or sub-indicator, with a header row somewhere in the first
  20 rows.
"""

import json
import logging
from pathlib import Path

import openpyxl

from ..catalogue import Catalogue, CatalogueError, build_catalogue
from ..config import CATALOGUE_FILE, PILLAR_NAMES
from .utils import find_header_row, normalise_id, to_snake_case

logger = logging.getLogger(__name__)

_HEADER_SIGNATURE = {"ID", "Indicator", "Pillar", "Q1", "Q2", "Q3", "Q4", "Annual"}

# snake_case header -> record field
_COLUMN_ALIASES = {
    "id": "id",
    "indicator_id": "id",
    "indicator": "name",
    "name": "name",
    "pillar": "pillar",
    "pillar_id": "pillar",
    "q1": "q1",
    "q2": "q2",
    "q3": "q3",
    "q4": "q4",
    "annual": "annual",
    "measurement_type": "measurement_type",
    "type": "measurement_type",
    "parent": "parent",
    "parent_id": "parent",
    "sub_key": "sub_key",
    "dual": "is_dual",
    "is_dual": "is_dual",
}


def load_catalogue_json(path: str | Path) -> Catalogue:
    """Load and normalise a JSON catalogue document."""
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except Exception:
        logger.exception("Failed to read catalogue: %s", path)
        raise

    if isinstance(document, list):
        catalogue = build_catalogue(document)
    elif isinstance(document, dict) and "indicators" in document:
        catalogue = build_catalogue(document["indicators"], document.get("pillars"))
    else:
        raise CatalogueError(f"{path}: expected a list of indicators or an 'indicators' key")

    logger.info("Loaded %d indicators from %s", len(catalogue), path)
    return catalogue


def load_default_catalogue() -> Catalogue:
    """Load the sample catalogue shipped with the package."""
    return load_catalogue_json(CATALOGUE_FILE)


def _pillar_id(label) -> str | None:
    if label is None or str(label).strip() == "":
        return None
    text = str(label).strip()
    for pillar_id, name in PILLAR_NAMES.items():
        if text.lower() in (pillar_id, name.lower()):
            return pillar_id
    return to_snake_case(text)


def load_catalogue_workbook(path: str | Path, sheet_name: str = "Indicators") -> Catalogue:
    """Load a catalogue from the planning office workbook.

    Assumptions
    -----------
    - The header row contains at least two of ID, Indicator, Pillar, Q1..Q4,
      Annual (case-insensitive) within the first 20 rows.
    - Target cells may hold numbers or curated strings ("80%", "1,000", "-").
    - A row with a Parent value is a sub-indicator of that parent; its
      Sub Key (or, if blank, its ID) is the key used in sub-values.
    - Pillar may be a pillar id ("economic") or its full name.

    Raises
    ------
    CatalogueError
        If no header row is found.
    """
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=False)
    except Exception:
        logger.exception("Failed to open catalogue workbook: %s", path)
        raise

    if sheet_name not in wb.sheetnames:
        logger.warning("Sheet '%s' not found, using '%s'", sheet_name, wb.sheetnames[0])
        sheet_name = wb.sheetnames[0]
    ws = wb[sheet_name]

    header_row = find_header_row(ws, _HEADER_SIGNATURE)
    if header_row is None:
        wb.close()
        raise CatalogueError(f"{path}: no indicator header row found in '{sheet_name}'")

    columns: dict[int, str] = {}
    for cell in ws[header_row]:
        if cell.value is None:
            continue
        field = _COLUMN_ALIASES.get(to_snake_case(cell.value))
        if field:
            columns[cell.column] = field

    records: dict[str, dict] = {}
    order: list[str] = []
    children: list[tuple[str, str, str]] = []

    for row in ws.iter_rows(min_row=header_row + 1):
        values = {columns[c.column]: c.value for c in row if c.column in columns}
        indicator_id = normalise_id(values.get("id"))
        if indicator_id is None:
            continue

        records[indicator_id] = {
            "id": indicator_id,
            "name": str(values.get("name") or indicator_id).strip(),
            "targets": {q: values.get(q) for q in ("q1", "q2", "q3", "q4", "annual")},
            "measurement_type": values.get("measurement_type"),
            "is_dual": values.get("is_dual"),
            "pillar_id": _pillar_id(values.get("pillar")),
        }
        order.append(indicator_id)

        parent_id = normalise_id(values.get("parent"))
        if parent_id is not None:
            key = str(values.get("sub_key") or indicator_id).strip()
            children.append((parent_id, key, indicator_id))

    wb.close()

    for parent_id, key, child_id in children:
        parent = records.get(parent_id)
        if parent is None:
            logger.warning("Sub-indicator %s names unknown parent %s", child_id, parent_id)
            continue
        parent.setdefault("sub_indicator_ids", {})[key] = child_id
        parent["is_dual"] = True
        # A sub-indicator row counts towards its parent, not its pillar
        records[child_id]["pillar_id"] = None

    if not records:
        logger.warning("No indicator rows extracted from %s", path)

    catalogue = build_catalogue([records[i] for i in order])
    logger.info("Loaded %d indicators from %s", len(catalogue), path)
    return catalogue
