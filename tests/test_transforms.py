"""Tests for imihigo_tracker.transforms."""

import json

import pandas as pd
import pytest

from imihigo_tracker.loaders import load_default_catalogue
from imihigo_tracker.transforms import (
    ENTRY_COLUMNS,
    build_dim_indicator,
    build_fact_entries,
    build_fact_indicator_progress,
    entries_from_frame,
)


@pytest.fixture(scope="module")
def catalogue():
    return load_default_catalogue()


@pytest.fixture
def raw_submissions():
    return pd.DataFrame([
        {"indicator_id": "1", "quarter_id": "Q1", "month": "July", "value": "1,200",
         "sub_values": "", "is_deleted": "false"},
        {"indicator_id": "8", "quarter_id": "", "month": "Aug", "value": "0",
         "sub_values": json.dumps({"maize": 500, "soya_kg": "40"}), "is_deleted": ""},
        {"indicator_id": "8", "quarter_id": "q2", "month": "October", "value": 0,
         "sub_values": json.dumps({"maize": 10}), "is_deleted": False, "sub:maize": "900"},
        {"indicator_id": "43", "quarter_id": "q1", "month": "July", "value": "62%",
         "sub_values": "", "is_deleted": "true"},
        {"indicator_id": "", "quarter_id": "q1", "month": "July", "value": "5",
         "sub_values": "", "is_deleted": ""},
        {"indicator_id": "44", "quarter_id": "", "month": "", "value": "5",
         "sub_values": "", "is_deleted": ""},
    ])


class TestBuildFactEntries:
    def test_columns(self, raw_submissions):
        df = build_fact_entries(raw_submissions)
        assert list(df.columns) == ENTRY_COLUMNS

    def test_deleted_and_unusable_rows_dropped(self, raw_submissions):
        df = build_fact_entries(raw_submissions)
        assert df["indicator_id"].tolist() == ["1", "8", "8"]

    def test_values_and_quarters(self, raw_submissions):
        df = build_fact_entries(raw_submissions)
        assert df.loc[0, "value"] == 1200
        assert df.loc[0, "quarter_id"] == "q1"
        assert df.loc[1, "quarter_id"] == "q1"
        assert df.loc[2, "quarter_id"] == "q2"

    def test_sub_values(self, raw_submissions):
        df = build_fact_entries(raw_submissions)
        assert df.loc[1, "sub_values"] == {"maize": 500.0, "soya_kg": 40.0}
        # sub:<key> columns override the JSON column
        assert df.loc[2, "sub_values"] == {"maize": 900.0}

    def test_empty(self):
        df = build_fact_entries(pd.DataFrame())
        assert df.empty
        assert list(df.columns) == ENTRY_COLUMNS

    def test_numeric_ids_from_spreadsheets(self):
        df = build_fact_entries(pd.DataFrame([{"indicator_id": 15.0, "quarter_id": 2, "value": 3}]))
        assert df.loc[0, "indicator_id"] == "15"
        assert df.loc[0, "quarter_id"] == "q2"


class TestEntriesFromFrame:
    def test_entries(self, raw_submissions):
        entries = entries_from_frame(build_fact_entries(raw_submissions))
        assert len(entries) == 3
        seed = entries[1]
        assert seed.indicator_id == "8"
        assert seed.month == "Aug"
        assert seed.sub_value("soya", ["soya_kg"]) == 40
        assert seed.is_deleted is False


class TestDimIndicator:
    def test_rows(self, catalogue):
        dim = build_dim_indicator(catalogue)
        assert len(dim) == catalogue.total_indicator_count == 18
        assert dim["number"].tolist() == list(range(1, 19))

    def test_attributes(self, catalogue):
        dim = build_dim_indicator(catalogue).set_index("indicator_id")
        assert dim.loc["3", "kind"] == "composite"
        assert dim.loc["3", "sub_indicator_count"] == 5
        assert dim.loc["43", "unit"] == "(%)"
        assert dim.loc["43", "q1"] == 62
        assert dim.loc["90", "measurement_type"] == "decreasing"
        assert dim.loc["52", "pillar_id"] == "social"


class TestFactIndicatorProgress:
    def test_long_format(self, catalogue, raw_submissions):
        entries = entries_from_frame(build_fact_entries(raw_submissions))
        df = build_fact_indicator_progress(catalogue, entries)
        assert len(df) == 18 * 4
        assert df["performance"].between(0, 100).all()

    def test_scores(self, catalogue, raw_submissions):
        entries = entries_from_frame(build_fact_entries(raw_submissions))
        df = build_fact_indicator_progress(catalogue, entries, quarter_ids=["q1"])
        by_id = df.set_index("indicator_id")
        # Indicator 1 has no q1 target, so 1200 against a floored 1 caps at 100
        assert by_id.loc["1", "performance"] == 100
        assert by_id.loc["8", "performance"] == pytest.approx(
            (500 / 25122 * 100 + 40 / 2350 * 100) / 2
        )
        assert by_id.loc["90", "performance"] == 100
