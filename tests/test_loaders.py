"""Tests for imihigo_tracker.loaders."""

import json

import openpyxl
import pandas as pd
import pytest

from imihigo_tracker.catalogue import CatalogueError
from imihigo_tracker.loaders import (
    load_catalogue_json,
    load_catalogue_workbook,
    load_default_catalogue,
    load_submissions,
)
from imihigo_tracker.loaders.utils import (
    find_header_row,
    normalise_quarter_id,
    parse_sub_values,
    quarter_for_month,
    to_snake_case,
)
from imihigo_tracker.models import MeasurementType
from imihigo_tracker.transforms import build_fact_entries


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

class TestUtils:
    @pytest.mark.parametrize("raw, expected", [
        ("q3", "q3"), ("Q2", "q2"), (4, "q4"), ("Quarter 1", "q1"), (None, None), ("Q7", None),
    ])
    def test_normalise_quarter_id(self, raw, expected):
        assert normalise_quarter_id(raw) == expected

    @pytest.mark.parametrize("month, expected", [
        ("July", "q1"), ("september", "q1"), ("Oct", "q2"), ("January", "q3"),
        ("June", "q4"), ("", None), ("Smarch", None),
    ])
    def test_quarter_for_month(self, month, expected):
        assert quarter_for_month(month) == expected

    def test_parse_sub_values(self):
        assert parse_sub_values('{"maize": "1,000", "soya": 3}') == {"maize": 1000.0, "soya": 3}
        assert parse_sub_values({"bq": None}) == {"bq": 0.0}
        assert parse_sub_values("not json") == {}
        assert parse_sub_values("[1, 2]") == {}
        assert parse_sub_values(float("nan")) == {}

    @pytest.mark.parametrize("name, expected", [
        ("indicatorId", "indicator_id"),
        ("Quarter ID", "quarter_id"),
        ("Measurement Type", "measurement_type"),
        ("sub:maize", "sub:maize"),
        ("isDeleted", "is_deleted"),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_find_header_row(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Rwamagana District"])
        ws.append([])
        ws.append(["id", "INDICATOR", "Q1"])
        assert find_header_row(ws, {"ID", "Indicator"}) == 3
        assert find_header_row(ws, {"Nothing", "Here"}) is None


# ---------------------------------------------------------------------------
# Catalogue loaders
# ---------------------------------------------------------------------------

class TestDefaultCatalogue:
    def test_loads(self):
        catalogue = load_default_catalogue()
        assert [p.id for p in catalogue.pillars] == ["economic", "social", "governance"]
        assert catalogue.total_indicator_count == 18

    def test_composites_resolved(self):
        catalogue = load_default_catalogue()
        assert [c.key for c in catalogue.get("3").children] == ["maize", "cassava", "rice", "beans", "soya"]
        assert [c.source_id for c in catalogue.get("10").children] == ["10a", "11", "12", "13", "14"]

    def test_targets_parsed(self):
        catalogue = load_default_catalogue()
        land_use = catalogue.get("45")
        assert land_use.measurement_type is MeasurementType.PERCENTAGE
        assert land_use.targets.q1 == 50
        assert land_use.targets.q2 == 0
        assert catalogue.get("91").targets.annual == pytest.approx(4.9)

    def test_standalone_duals_flagged(self):
        catalogue = load_default_catalogue()
        flagged = {w.indicator_id for w in catalogue.warnings if w.kind == "standalone-dual"}
        assert flagged == {"43", "45", "46", "53", "125", "126", "127", "128"}


class TestCatalogueJson:
    def test_bare_list(self, tmp_path):
        path = tmp_path / "catalogue.json"
        path.write_text(json.dumps([
            {"id": "1", "name": "One", "pillarId": "economic", "targets": {"q1": 10}},
            {"id": "2", "name": "Two", "pillarId": "social"},
        ]))
        catalogue = load_catalogue_json(path)
        assert catalogue.total_indicator_count == 2
        assert catalogue.pillar("social").indicator_ids == ("2",)

    def test_unrecognised_document(self, tmp_path):
        path = tmp_path / "catalogue.json"
        path.write_text(json.dumps({"rows": []}))
        with pytest.raises(CatalogueError):
            load_catalogue_json(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalogue_json(tmp_path / "missing.json")


@pytest.fixture
def targets_workbook(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Indicators"
    ws.append(["Rwamagana District Imihigo targets"])
    ws.append([])
    ws.append(["ID", "Indicator", "Pillar", "Q1", "Q2", "Q3", "Q4", "Annual",
               "Measurement Type", "Parent", "Sub Key"])
    ws.append([8, "Quantity of improved seed", "Economic Transformation Pillar",
               0, 0, 0, 0, 0, None, None, None])
    ws.append(["8a", "Quantity of improved Maize seeds used (Kg)", None,
               25122, 167762, 6040, 0, 198924, None, 8, "maize"])
    ws.append([9, "Quantity of improved Soybeans seeds used (Kg)", None,
               2350, 5900, 6578, 0, 14828, None, 8, "soya"])
    ws.append([53, "Percentage of timely payments", "social",
               "100%", "100%", "100%", "100%", "100%", "percentage", None, None])
    ws.append([None, "Totals", None, None, None, None, None, None, None, None, None])
    path = tmp_path / "targets.xlsx"
    wb.save(path)
    return path


class TestCatalogueWorkbook:
    def test_indicators(self, targets_workbook):
        catalogue = load_catalogue_workbook(targets_workbook)
        assert len(catalogue) == 4
        assert catalogue.get("53").measurement_type is MeasurementType.PERCENTAGE
        assert catalogue.get("53").targets.q3 == 100

    def test_children_from_parent_column(self, targets_workbook):
        catalogue = load_catalogue_workbook(targets_workbook)
        seed = catalogue.get("8")
        assert seed.is_dual
        assert [(c.key, c.source_id) for c in seed.children] == [("maize", "8a"), ("soya", "9")]
        assert seed.children[1].targets.q3 == 6578

    def test_pillars(self, targets_workbook):
        catalogue = load_catalogue_workbook(targets_workbook)
        assert catalogue.pillar("economic").indicator_ids == ("8",)
        assert catalogue.pillar("social").indicator_ids == ("53",)
        assert catalogue.total_indicator_count == 2

    def test_falls_back_to_first_sheet(self, targets_workbook):
        catalogue = load_catalogue_workbook(targets_workbook, sheet_name="Missing")
        assert "8" in catalogue

    def test_no_header(self, tmp_path):
        wb = openpyxl.Workbook()
        wb.active.append(["just", "some", "text"])
        path = tmp_path / "empty.xlsx"
        wb.save(path)
        with pytest.raises(CatalogueError):
            load_catalogue_workbook(path)


# ---------------------------------------------------------------------------
# Submissions loader
# ---------------------------------------------------------------------------

EXPORT = pd.DataFrame([
    {"indicatorId": "1", "quarterId": "q4", "month": "April", "value": "1,500",
     "subValues": "", "isDeleted": "false"},
    {"indicatorId": "8", "quarterId": "q1", "month": "July", "value": "0",
     "subValues": json.dumps({"maize": 100, "soya": 20}), "isDeleted": "false"},
    {"indicatorId": "8", "quarterId": "q1", "month": "August", "value": "0",
     "subValues": json.dumps({"maize": 999}), "isDeleted": "true"},
])


class TestLoadSubmissions:
    def test_csv(self, tmp_path):
        path = tmp_path / "submissions.csv"
        EXPORT.to_csv(path, index=False)
        df = load_submissions(path)
        assert list(df.columns) == ["indicator_id", "quarter_id", "month", "value", "sub_values", "is_deleted"]
        assert len(df) == 3

        fact = build_fact_entries(df)
        assert len(fact) == 2
        assert fact.loc[1, "sub_values"] == {"maize": 100.0, "soya": 20.0}

    def test_excel(self, tmp_path):
        path = tmp_path / "submissions.xlsx"
        EXPORT.to_excel(path, index=False, engine="openpyxl")
        df = load_submissions(path)
        assert "indicator_id" in df.columns
        assert build_fact_entries(df)["value"].tolist() == [1500.0, 0.0]

    def test_json(self, tmp_path):
        path = tmp_path / "submissions.json"
        path.write_text(EXPORT.to_json(orient="records"))
        df = load_submissions(path)
        assert "quarter_id" in df.columns
        assert len(build_fact_entries(df)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_submissions(tmp_path / "missing.csv")
