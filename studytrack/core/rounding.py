from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: Decimal | int | float) -> int:
    """Round to the nearest integer, halves away from zero (12.5 -> 13)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """Integer percentage of part/whole, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(Decimal(part) * 100 / Decimal(whole))
