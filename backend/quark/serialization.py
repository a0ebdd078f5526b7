from __future__ import annotations

from decimal import Decimal
from typing import Optional


def to_number(value: Optional[Decimal]) -> Optional[float | int]:
    """JSON-friendly rendering of Numeric columns: whole values become ints."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)
