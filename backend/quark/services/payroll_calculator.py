# Overview: Pure payroll arithmetic; wage, overtime and grand total for one worker-period.

"""
Payroll Calculator

DAILY:  wage = daily_rate * work_days
PIECE:  n <= 10        -> n * 380
        10 < n <= 14   -> n * 420
        n > 14         -> 14 * 420 + (n - 14) * extra_rate   (extra_rate default 25)
OT:     ot_hours * 60
TOTAL:  wage + ot + bonus - deduction

No store access. Missing inputs count as zero; negative or non-numeric
inputs raise ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..serialization import to_number
from ..validation import ValidationError, coerce_decimal, non_negative_decimal, non_negative_int


PAY_TYPE_DAILY = "daily"
PAY_TYPE_PIECE = "piece"
PAY_TYPES = (PAY_TYPE_DAILY, PAY_TYPE_PIECE)

PIECE_RATE_BASE = Decimal("380")
PIECE_RATE_TIER2 = Decimal("420")
PIECE_TIER1_MAX = 10
PIECE_TIER2_MAX = 14
DEFAULT_EXTRA_RATE = Decimal("25")
OT_HOURLY_RATE = Decimal("60")

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PayInputs:
    daily_rate: Decimal = Decimal("0")
    work_days: Decimal = Decimal("0")
    piece_count: int = 0
    extra_rate: Decimal | None = None
    ot_hours: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    deduction: Decimal = Decimal("0")


@dataclass(frozen=True)
class PayComputation:
    wage_total: Decimal
    ot_total: Decimal
    grand_total: Decimal

    def to_dict(self) -> dict:
        return {
            "wage_total": to_number(self.wage_total),
            "ot_total": to_number(self.ot_total),
            "grand_total": to_number(self.grand_total),
        }


def parse_pay_inputs(inputs: dict | None) -> PayInputs:
    """Normalize raw JSON inputs; absent fields become zero."""
    inputs = inputs or {}

    extra_raw = inputs.get("extra_rate")
    extra_rate = None
    if extra_raw is not None and not (isinstance(extra_raw, str) and not extra_raw.strip()):
        extra_rate = coerce_decimal(extra_raw, "extra_rate")
        if extra_rate < 0:
            raise ValidationError("extra_rate must be >= 0")

    return PayInputs(
        daily_rate=non_negative_decimal(inputs, "daily_rate"),
        work_days=non_negative_decimal(inputs, "work_days"),
        piece_count=non_negative_int(inputs, "piece_count"),
        extra_rate=extra_rate,
        ot_hours=non_negative_decimal(inputs, "ot_hours"),
        bonus=non_negative_decimal(inputs, "bonus"),
        deduction=non_negative_decimal(inputs, "deduction"),
    )


def piece_wage(piece_count: int, extra_rate: Decimal | None = None) -> Decimal:
    if piece_count <= PIECE_TIER1_MAX:
        return piece_count * PIECE_RATE_BASE
    if piece_count <= PIECE_TIER2_MAX:
        return piece_count * PIECE_RATE_TIER2
    rate = DEFAULT_EXTRA_RATE if extra_rate is None else extra_rate
    return PIECE_TIER2_MAX * PIECE_RATE_TIER2 + (piece_count - PIECE_TIER2_MAX) * rate


def compute_pay(pay_type: str, inputs: dict | PayInputs | None) -> PayComputation:
    if pay_type not in PAY_TYPES:
        raise ValidationError(f"pay_type must be one of: {', '.join(PAY_TYPES)}")

    if not isinstance(inputs, PayInputs):
        inputs = parse_pay_inputs(inputs)

    if pay_type == PAY_TYPE_DAILY:
        wage = inputs.daily_rate * inputs.work_days
    else:
        wage = piece_wage(inputs.piece_count, inputs.extra_rate)

    ot = inputs.ot_hours * OT_HOURLY_RATE
    grand = wage + ot + inputs.bonus - inputs.deduction

    return PayComputation(
        wage_total=wage.quantize(_CENTS, rounding=ROUND_HALF_UP),
        ot_total=ot.quantize(_CENTS, rounding=ROUND_HALF_UP),
        grand_total=grand.quantize(_CENTS, rounding=ROUND_HALF_UP),
    )
