"""
Loader for submission exports.

The submission service exports one row per monthly entry as CSV, Excel or
JSON. Column names arrive in camelCase (``indicatorId``, ``quarterId``,
``subValues``, ``isDeleted``) or as spreadsheet labels; both are renamed to
snake_case here and cleaned in `transforms.build_fact_entries`.
"""

import json
import logging
from pathlib import Path

import pandas as pd

from .utils import to_snake_case

logger = logging.getLogger(__name__)


def load_submissions(path: str | Path, sheet_name: str | int = 0) -> pd.DataFrame:
    """Load a submissions export into a raw DataFrame.

    Returns
    -------
    DataFrame with snake_case columns, typically:
        indicator_id, quarter_id, month, value, sub_values, is_deleted
    and optionally ``sub:<key>`` columns carrying composite sub-values.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    try:
        if suffix in (".xlsx", ".xlsm"):
            df = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype={"indicatorId": str})
        elif suffix == ".json":
            with open(path, encoding="utf-8") as fh:
                df = pd.DataFrame(json.load(fh))
        else:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except Exception:
        logger.exception("Failed to read submissions: %s", path)
        raise

    df = df.rename(columns={c: to_snake_case(c) for c in df.columns})
    logger.info("Loaded %d submission rows from %s", len(df), path)
    return df
