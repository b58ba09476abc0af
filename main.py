"""
Imihigo Tracker: end-to-end progress pipeline.

Loads the indicator catalogue and the submissions export (or simulated
submissions when no export is present), computes indicator, pillar and
district progress, and prints smoke-test summaries.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from imihigo_tracker.config import (
    CATALOGUE_WORKBOOK_FILE,
    DISTRICT_NAME,
    QUARTER_IDS,
    QUARTERS,
    SUBMISSIONS_FILE,
)
from imihigo_tracker.loaders import (
    load_catalogue_workbook,
    load_default_catalogue,
    load_submissions,
)
from imihigo_tracker.transforms import (
    build_dim_indicator,
    build_fact_entries,
    build_fact_indicator_progress,
    entries_from_frame,
)
from imihigo_tracker.simulator import generate_submissions
from imihigo_tracker.dashboard import (
    get_available_quarters,
    get_district_summary,
    get_indicator_progress_table,
    get_pillar_overview,
)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the progress pipeline and print smoke-test outputs."""

    print("=" * 70)
    print(f"  IMIHIGO TRACKER: {DISTRICT_NAME}")
    print("  Progress Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Catalogue
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING CATALOGUE")
    print("-" * 40)

    if CATALOGUE_WORKBOOK_FILE.exists():
        catalogue = load_catalogue_workbook(CATALOGUE_WORKBOOK_FILE)
    else:
        catalogue = load_default_catalogue()

    print(f"\nIndicators: {len(catalogue)} ({catalogue.total_indicator_count} in pillars)")
    for pillar in catalogue.pillars:
        print(f"  {pillar.id:12s} | {pillar.name} | {len(pillar.indicator_ids)} indicators")
    print(f"Catalogue warnings: {len(catalogue.warnings)}")
    for warning in catalogue.warnings:
        print(f"  [{warning.kind}] {warning.message}")

    dim_indicator = build_dim_indicator(catalogue)
    print(f"\ndim_indicator: {len(dim_indicator)} rows")
    print(dim_indicator[
        ["number", "indicator_id", "pillar_id", "kind", "measurement_type", "unit", "annual"]
    ].to_string(index=False))

    # ------------------------------------------------------------------
    # 2. Submissions
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] LOADING SUBMISSIONS")
    print("-" * 40)

    if SUBMISSIONS_FILE.exists():
        raw_submissions = load_submissions(SUBMISSIONS_FILE)
    else:
        logger.info("No submissions export at %s; simulating", SUBMISSIONS_FILE)
        raw_submissions = generate_submissions(catalogue)

    fact_entries = build_fact_entries(raw_submissions)
    entries = entries_from_frame(fact_entries)
    print(f"\nfact_entries: {len(fact_entries)} rows")
    print(fact_entries.head(10).to_string(index=False))

    quarters = get_available_quarters(entries)
    print(f"\nAvailable quarters: {quarters}")

    # ------------------------------------------------------------------
    # 3. Progress
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] PROGRESS")
    print("-" * 40)

    fact_progress = build_fact_indicator_progress(catalogue, entries)
    print(f"\nfact_indicator_progress: {len(fact_progress)} rows")

    overview = get_pillar_overview(catalogue, entries)
    print("\nPillar overview:")
    print(overview[
        ["pillar_id", "quarter_id", "pillar_progress", "annual_progress", "pillar_indicator_count"]
    ].to_string(index=False))

    district = get_district_summary(catalogue, entries)
    print("\nDistrict summary:")
    print(district.to_string(index=False))

    selected_quarter = quarters[-1] if quarters else QUARTER_IDS[0]
    for pillar in catalogue.pillars:
        table = get_indicator_progress_table(catalogue, entries, pillar.id, selected_quarter)
        print(f"\n{pillar.name}, {QUARTERS[selected_quarter]['name']}:")
        print(table[
            ["number", "indicator_id", "unit", "target", "actual", "performance", "trend", "status"]
        ].to_string(index=False))

    # ------------------------------------------------------------------
    # 4. Checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] CONSISTENCY CHECKS")
    print("-" * 40)

    check1 = fact_progress["performance"].between(0, 100).all()
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] Every indicator performance is within 0-100")

    check2 = len(overview) == len(catalogue.pillars) * len(QUARTER_IDS)
    print(f"  [{'PASS' if check2 else 'FAIL'}] One overview row per pillar per quarter ({len(overview)})")

    counts = overview.drop_duplicates("pillar_id")["pillar_indicator_count"].sum()
    check3 = counts == catalogue.total_indicator_count
    print(f"  [{'PASS' if check3 else 'FAIL'}] Pillar indicator counts add up to {catalogue.total_indicator_count}")

    check4 = district["district_progress"].between(0, 100).all()
    print(f"  [{'PASS' if check4 else 'FAIL'}] District progress is within 0-100")

    print()
    print("=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
