"""Tests for imihigo_tracker.values."""

import math

import pytest

from imihigo_tracker.values import parse_flag, parse_value


class TestParseValue:
    @pytest.mark.parametrize("raw, expected", [
        ("80%", 80.0),
        ("1,685,230,763", 1685230763.0),
        ("1,000", 1000.0),
        ("4.9%", 4.9),
        ("  12 kg", 12.0),
        ("62 %", 62.0),
    ])
    def test_curated_strings(self, raw, expected):
        assert parse_value(raw) == expected

    @pytest.mark.parametrize("raw", [None, "-", "", "abc", "n/a", "%"])
    def test_unreadable_is_zero(self, raw):
        assert parse_value(raw) == 0

    def test_numbers_pass_through(self):
        assert parse_value(5) == 5
        assert parse_value(2.5) == 2.5
        assert parse_value(0) == 0

    def test_nan_is_zero(self):
        assert parse_value(float("nan")) == 0

    def test_bool(self):
        assert parse_value(True) == 1.0

    def test_lenient_prefix(self):
        assert parse_value("1.2.3") == 1.2

    def test_sign_is_stripped_from_text(self):
        assert parse_value("-5") == 5.0

    @pytest.mark.parametrize("raw", [None, "-", "80%", "1,000", 3, 7.25, "x", "0.5"])
    def test_idempotent(self, raw):
        once = parse_value(raw)
        assert parse_value(once) == once

    def test_always_finite(self):
        for raw in ["1e400", "9" * 400, "inf"]:
            assert math.isfinite(parse_value(raw))


class TestParseFlag:
    @pytest.mark.parametrize("raw", [True, 1, 1.0, "true", "Yes", "y", "1"])
    def test_truthy(self, raw):
        assert parse_flag(raw) is True

    @pytest.mark.parametrize("raw", [None, False, 0, float("nan"), "false", "no", ""])
    def test_falsy(self, raw):
        assert parse_flag(raw) is False
