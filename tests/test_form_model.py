"""
Tests for the monthly form model -- budget/form_model.py

Covers amount parsing and clamping, field ids, and reads over a live
mapping of posted values.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget.form_model import (  # noqa: E402
    AMOUNT_MAX,
    AMOUNT_MIN,
    FIELD_IDS,
    MONTH_KEYS,
    MONTH_LABELS,
    FormData,
    FormModel,
    clamp,
    field_id,
    parse_amount,
)


# ── parse_amount ──────────────────────────────────────────────────────────────

class TestParseAmount:
    @pytest.mark.parametrize("raw, expected", [
        ("1200.50", 1200.5),
        ("0", 0.0),
        ("50000", 50000.0),
        ("99999", 50000.0),
        ("50000.01", 50000.0),
        ("-5", 0.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("12abc", 12.0),
        ("  7", 7.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("1e999", 0.0),
        ("Infinity", 0.0),
        ("NaN", 0.0),
    ])
    def test_cases(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["-1e9", "0", "123.45", "49999.99", "1e12", "x"])
    def test_result_always_in_range(self, raw):
        value = parse_amount(raw)
        assert AMOUNT_MIN <= value <= AMOUNT_MAX

    @pytest.mark.parametrize("raw", ["-3", "10", "70000", "2.5"])
    def test_reparse_is_stable(self, raw):
        value = parse_amount(raw)
        assert parse_amount(str(value)) == value


class TestClamp:
    def test_inside_range_unchanged(self):
        assert clamp(42.0) == 42.0

    def test_bounds(self):
        assert clamp(-0.01) == AMOUNT_MIN
        assert clamp(AMOUNT_MAX + 1) == AMOUNT_MAX

    def test_idempotent(self):
        for v in (-10.0, 0.0, 123.0, 80000.0):
            assert clamp(clamp(v)) == clamp(v)


# ── Field ids ─────────────────────────────────────────────────────────────────

class TestFieldIds:
    def test_field_id_format(self):
        assert field_id("income", "january") == "income-january"
        assert field_id("expense", "december") == "expense-december"

    def test_twenty_four_fields(self):
        assert len(FIELD_IDS) == 24

    def test_month_order(self):
        assert MONTH_KEYS[0] == "january"
        assert MONTH_KEYS[-1] == "december"
        assert MONTH_LABELS[0] == "January"
        assert len(MONTH_LABELS) == 12


# ── FormModel ─────────────────────────────────────────────────────────────────

class TestFormModel:
    def test_empty_values_read_as_zero(self):
        data = FormModel.from_values({}).read()
        assert data.income == (0.0,) * 12
        assert data.expense == (0.0,) * 12

    def test_reads_sanitized_values_in_calendar_order(self):
        values = {
            "income-january": "1200",
            "expense-january": "-40",
            "income-december": "99999",
            "expense-march": "abc",
        }
        data = FormModel.from_values(values).read()
        assert data.income[0] == 1200.0
        assert data.expense[0] == 0.0
        assert data.income[11] == 50000.0
        assert data.expense[2] == 0.0

    def test_live_mapping_seen_by_later_reads(self):
        values = {}
        model = FormModel.from_values(values)
        assert model.read().income[1] == 0.0
        values["income-february"] = "300"
        assert model.read().income[1] == 300.0

    def test_missing_months_and_accessors_read_zero(self):
        model = FormModel({
            "january": (lambda: "10", None),
            "february": (None, lambda: "20"),
        })
        data = model.read()
        assert data.income[0] == 10.0
        assert data.expense[0] == 0.0
        assert data.income[1] == 0.0
        assert data.expense[1] == 20.0
        assert data.income[5] == 0.0

    def test_entries_one_per_month(self):
        entries = FormModel.from_values({"expense-may": "5"}).entries()
        assert [e.month for e in entries] == list(MONTH_KEYS)
        assert entries[4].expense == 5.0

    def test_to_dict(self):
        data = FormData(income=(1.0,) * 12, expense=(2.0,) * 12)
        d = data.to_dict()
        assert d["income"] == [1.0] * 12
        assert d["expense"] == [2.0] * 12
