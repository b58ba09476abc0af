"""Tests for imihigo_tracker.dashboard."""

import pytest

from imihigo_tracker.catalogue import build_catalogue
from imihigo_tracker.dashboard import (
    INDICATOR_COLUMNS,
    PILLAR_COLUMNS,
    get_available_quarters,
    get_district_summary,
    get_indicator_progress_table,
    get_pillar_overview,
    get_sub_indicator_breakdown,
)
from imihigo_tracker.models import Entry


@pytest.fixture
def catalogue():
    return build_catalogue(
        [
            {"id": "8", "name": "Quantity of improved seed", "isDual": True,
             "subIndicatorIds": {"maize": "8a", "soya": "9"}},
            {"id": "8a", "name": "Maize seed (Kg)", "targets": {"q1": 100, "q2": 100, "annual": 200}},
            {"id": "9", "name": "Soya seed (Kg)", "targets": {"q1": 50, "q2": 50, "annual": 100}},
            {"id": "44", "name": "Number of Ha of detailed physical plan elaborated",
             "targets": {"q1": 10, "q2": 10, "q3": 5, "annual": 25}},
            {"id": "90", "name": "Repetition rate in Primary school decreased",
             "targets": {"q1": "27%", "annual": "27%"}, "measurementType": "decreasing"},
        ],
        [
            {"id": "economic", "name": "Economic Transformation Pillar", "indicators": ["8", "44"]},
            {"id": "social", "name": "Social Transformation Pillar", "indicators": ["90"]},
        ],
    )


@pytest.fixture
def entries():
    return [
        Entry.create("8", "q1", 0, month="July", sub_values={"maize": 50, "soya": 50}),
        Entry.create("44", "q1", 5, month="July"),
        Entry.create("44", "q2", 20, month="November"),
        Entry.create("90", "q3", 30, month="March", is_deleted=True),
    ]


class TestPillarOverview:
    def test_columns(self, catalogue, entries):
        df = get_pillar_overview(catalogue, entries, "q1")
        assert list(df.columns) == PILLAR_COLUMNS
        assert df["pillar_id"].tolist() == ["economic", "social"]

    def test_values(self, catalogue, entries):
        df = get_pillar_overview(catalogue, entries, "q1").set_index("pillar_id")
        # seed: (50 + 100) / 2 = 75; plan: 5 / 10 = 50
        assert df.loc["economic", "indicator_sum"] == 125
        assert df.loc["economic", "pillar_progress"] == 62.5
        assert df.loc["economic", "annual_progress"] == pytest.approx(41.67)
        assert df.loc["social", "pillar_progress"] == 100

    def test_all_quarters(self, catalogue, entries):
        assert len(get_pillar_overview(catalogue, entries)) == 8


class TestDistrictSummary:
    def test_every_quarter(self, catalogue, entries):
        summary = get_district_summary(catalogue, entries).set_index("quarter_id")
        # seed 75 + plan 50 + repetition 100 (no actual) over 3 indicators
        assert summary.loc["q1", "district_progress"] == 75
        assert summary.loc["q1", "trend"] == "improving"
        assert list(summary.index) == ["q1", "q2", "q3", "q4"]

    def test_single_quarter(self, catalogue, entries):
        summary = get_district_summary(catalogue, entries, "q1")
        assert summary["quarter_id"].tolist() == ["q1"]

    def test_rounds_once_over_all_pillars(self):
        catalogue = build_catalogue(
            [{"id": i, "targets": {"q1": 1000}} for i in ("a", "b", "c")],
            [
                {"id": "economic", "indicators": ["a"]},
                {"id": "social", "indicators": ["b"]},
                {"id": "governance", "indicators": ["c"]},
            ],
        )
        entries = [Entry.create(i, "q1", 0.12, month="July") for i in ("a", "b", "c")]

        overview = get_pillar_overview(catalogue, entries, "q1")
        assert (overview["annual_progress"] == 0).all()

        summary = get_district_summary(catalogue, entries, "q1")
        assert summary["district_progress"].tolist() == [0.01]

    def test_accepts_generator(self, catalogue, entries):
        summary = get_district_summary(catalogue, (e for e in entries))
        assert summary.set_index("quarter_id").loc["q1", "district_progress"] == 75

    def test_empty_catalogue(self):
        summary = get_district_summary(build_catalogue([]), [], "q1")
        assert summary["district_progress"].tolist() == [0]


class TestIndicatorProgressTable:
    def test_columns(self, catalogue, entries):
        df = get_indicator_progress_table(catalogue, entries, "economic", "q1")
        assert list(df.columns) == INDICATOR_COLUMNS
        assert df["number"].tolist() == [1, 2]

    def test_values(self, catalogue, entries):
        df = get_indicator_progress_table(catalogue, entries, "economic", "q2").set_index("indicator_id")
        assert df.loc["44", "target"] == 20
        assert df.loc["44", "performance"] == 100
        assert df.loc["44", "annual_performance"] == 80
        assert df.loc["44", "status"] == "on-track"
        assert df.loc["44", "unit"] == "(Ha)"
        assert df.loc["8", "performance"] == 0
        assert df.loc["8", "status"] == "behind"

    def test_unknown_pillar(self, catalogue, entries):
        df = get_indicator_progress_table(catalogue, entries, "ghost", "q1")
        assert df.empty
        assert list(df.columns) == INDICATOR_COLUMNS


class TestSubIndicatorBreakdown:
    def test_composite(self, catalogue, entries):
        df = get_sub_indicator_breakdown(catalogue, entries, "8", "q1")
        assert df["key"].tolist() == ["maize", "soya"]
        assert df["performance"].tolist() == [50, 100]

    def test_simple_indicator(self, catalogue, entries):
        assert get_sub_indicator_breakdown(catalogue, entries, "44", "q1").empty


class TestAvailableQuarters:
    def test_fiscal_order_without_deleted(self, entries):
        assert get_available_quarters(reversed(entries)) == ["q1", "q2"]

    def test_month_only_entries(self):
        assert get_available_quarters([Entry.create("1", "", 1, month="May")]) == ["q4"]
