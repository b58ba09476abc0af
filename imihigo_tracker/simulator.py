"""
Simulated submission generator for demos and the dashboard.

Produces monthly submissions for every pillar indicator in a catalogue, in
the same raw shape as a submissions export, so the output flows through
`transforms.build_fact_entries` unchanged. All values are synthetic.
"""

import json

import numpy as np
import pandas as pd

from .catalogue import Catalogue
from .config import QUARTER_IDS, QUARTERS
from .models import MeasurementType, Targets

# ---------------------------------------------------------------------------
# Simulation parameters
# ---------------------------------------------------------------------------
# Share of the quarter target reached by the last month, per quarter
_COMPLETION_MEAN = {"q1": 0.95, "q2": 0.85, "q3": 0.7, "q4": 0.55}
_COMPLETION_STD = 0.2

# Chance an indicator files nothing for a month
_MISSING_RATE = 0.1


def _simulate_value(
    rng: np.random.Generator,
    targets: Targets,
    measurement_type: MeasurementType,
    quarter_id: str,
    month_idx: int,
) -> float:
    completion = max(0.0, rng.normal(_COMPLETION_MEAN.get(quarter_id, 0.8), _COMPLETION_STD))

    if measurement_type is MeasurementType.PERCENTAGE:
        # Snapshots hover around the quarter's rate
        value = targets.for_quarter(quarter_id) * completion
    elif measurement_type is MeasurementType.DECREASING:
        # Monthly counts; fewer is better
        value = targets.for_quarter(quarter_id) / 3 * rng.uniform(0.6, 1.6)
    else:
        # Reported figures already include earlier months
        value = targets.through_quarter(quarter_id) * completion * (month_idx + 1) / 3

    return round(float(value), 2)


def generate_submissions(
    catalogue: Catalogue,
    quarters: tuple[str, ...] = QUARTER_IDS,
    seed: int = 42,
    missing_rate: float = _MISSING_RATE,
) -> pd.DataFrame:
    """Generate one submission per pillar indicator per month.

    Composite indicators file a zero value with ``sub_values`` keyed by
    child; other indicators file a plain value.

    Returns
    -------
    DataFrame with columns:
        indicator_id, quarter_id, month, value, sub_values, is_deleted
    """
    rng = np.random.default_rng(seed)
    rows = []

    for pillar in catalogue.pillars:
        for indicator in catalogue.pillar_indicators(pillar.id):
            for qid in quarters:
                for month_idx, month in enumerate(QUARTERS[qid]["months"]):
                    if rng.random() < missing_rate:
                        continue

                    if indicator.children:
                        value = 0.0
                        sub_values = {
                            child.key: _simulate_value(
                                rng, child.targets, child.measurement_type, qid, month_idx
                            )
                            for child in indicator.children
                        }
                    else:
                        value = _simulate_value(
                            rng, indicator.targets, indicator.measurement_type, qid, month_idx
                        )
                        sub_values = {}

                    rows.append({
                        "indicator_id": indicator.id,
                        "quarter_id": qid,
                        "month": month,
                        "value": value,
                        "sub_values": json.dumps(sub_values) if sub_values else "",
                        "is_deleted": False,
                    })

    return pd.DataFrame(rows)
