from decimal import Decimal

import pytest

from quark.services.payroll_calculator import PayInputs, compute_pay, parse_pay_inputs
from quark.validation import ValidationError


class TestPieceRates:
    @pytest.mark.parametrize(
        "pieces,expected",
        [
            (0, Decimal("0")),
            (1, Decimal("380")),
            (10, Decimal("3800")),
            (11, Decimal("4620")),
            (14, Decimal("5880")),
            (15, Decimal("5905")),
            (20, Decimal("6030")),
        ],
    )
    def test_tiers(self, pieces, expected):
        result = compute_pay("piece", {"piece_count": pieces})
        assert result.wage_total == expected
        assert result.grand_total == expected

    def test_custom_extra_rate(self):
        result = compute_pay("piece", {"piece_count": 16, "extra_rate": 50})
        assert result.wage_total == Decimal("5980")

    def test_zero_extra_rate_is_honoured(self):
        result = compute_pay("piece", {"piece_count": 20, "extra_rate": 0})
        assert result.wage_total == Decimal("5880")


class TestDailyRates:
    def test_daily(self):
        result = compute_pay("daily", {"daily_rate": 400, "work_days": 22})
        assert result.wage_total == Decimal("8800")
        assert result.ot_total == Decimal("0")
        assert result.grand_total == Decimal("8800")

    def test_half_days(self):
        result = compute_pay("daily", {"daily_rate": "350", "work_days": "10.5"})
        assert result.wage_total == Decimal("3675")


class TestTotals:
    def test_overtime_bonus_and_deduction(self):
        result = compute_pay(
            "daily",
            {"daily_rate": 400, "work_days": 22, "ot_hours": 5, "bonus": 500, "deduction": 200},
        )
        assert result.ot_total == Decimal("300")
        assert result.grand_total == Decimal("9400")

    def test_missing_inputs_default_to_zero(self):
        result = compute_pay("daily", {})
        assert result.grand_total == Decimal("0")

    def test_accepts_parsed_inputs(self):
        inputs = parse_pay_inputs({"piece_count": "10"})
        assert isinstance(inputs, PayInputs)
        assert compute_pay("piece", inputs).wage_total == Decimal("3800")

    def test_to_dict_renders_numbers(self):
        result = compute_pay("piece", {"piece_count": 10, "ot_hours": 1.5})
        assert result.to_dict() == {"wage_total": 3800, "ot_total": 90, "grand_total": 3890}


class TestRejectedInputs:
    def test_unknown_pay_type(self):
        with pytest.raises(ValidationError):
            compute_pay("hourly", {"daily_rate": 400})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("daily_rate", -1),
            ("work_days", "-2"),
            ("piece_count", -3),
            ("ot_hours", -0.5),
            ("bonus", -100),
            ("deduction", -1),
            ("extra_rate", -25),
        ],
    )
    def test_negative_inputs(self, field, value):
        with pytest.raises(ValidationError):
            compute_pay("daily", {field: value})

    @pytest.mark.parametrize("value", ["abc", True, "NaN"])
    def test_non_numeric_inputs(self, value):
        with pytest.raises(ValidationError):
            compute_pay("daily", {"daily_rate": value})

    def test_fractional_piece_count(self):
        with pytest.raises(ValidationError):
            compute_pay("piece", {"piece_count": 10.5})
