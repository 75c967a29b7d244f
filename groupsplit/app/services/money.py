"""
services/money.py — Integer minor-unit money arithmetic.

All amounts inside the engine are ints counting the smallest currency subunit
(sen, cents). Floats never touch money. Ratios are computed exactly with
Decimal or Fraction and rounded once, half-up, back to an int.

Major-unit Decimals exist only at the HTTP boundary (to_major_units /
from_major_units); the conversion factor comes from MINOR_UNITS_PER_MAJOR.

Layer rules:
  - No Flask, no SQLAlchemy. Pure functions only.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction

_HUNDRED = Decimal("100")
_PERCENT_PLACES = Decimal("0.01")


def round_half_up(value: int | Decimal | Fraction) -> int:
    """
    Rounds to the nearest integer, with exact halves rounded away from zero.

        round_half_up(Decimal("2.5"))   == 3
        round_half_up(Fraction(7, 2))   == 4
        round_half_up(Decimal("-2.5"))  == -3

    Python's built-in round() uses banker's rounding and is not used for money.
    """
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return int(value.to_integral_value(rounding=ROUND_HALF_UP))

    fraction = Fraction(value)
    magnitude = math.floor(abs(fraction) + Fraction(1, 2))
    return magnitude if fraction >= 0 else -magnitude


def percentage_of(total: int, percentage: Decimal) -> int:
    """Returns round_half_up(total * percentage / 100) in minor units."""
    return round_half_up(Decimal(total) * Decimal(percentage) / _HUNDRED)


def reconcile_remainder(
        shares: list[int],
        total: int,
        designated_index: int = 0,
) -> list[int]:
    """
    Returns a copy of `shares` whose sum is exactly `total`.

    The difference total - sum(shares) is added to shares[designated_index].
    If that would make the designated share negative, the difference is moved
    to the next share (same order, wrapping around) that can absorb it whole.
    Shares are never negative; when total >= 0 some share can always absorb
    a negative difference because the remaining shares sum above total.
    """
    if total < 0:
        raise ValueError(f"total must be non-negative, got {total}")

    adjusted = list(shares)
    difference = total - sum(adjusted)
    if difference == 0 or not adjusted:
        return adjusted

    count = len(adjusted)
    for offset in range(count):
        index = (designated_index + offset) % count
        if adjusted[index] + difference >= 0:
            adjusted[index] += difference
            return adjusted

    # No single share can absorb it: spread the deficit from the designated
    # share onward, draining each share to zero.
    index = designated_index
    while difference < 0:
        taken = min(adjusted[index], -difference)
        adjusted[index] -= taken
        difference += taken
        index = (index + 1) % count
    return adjusted


def _major_quantum(minor_units_per_major: int) -> Decimal:
    """Smallest representable major amount, e.g. Decimal('0.01') for 100."""
    places = len(str(minor_units_per_major)) - 1
    if minor_units_per_major != 10 ** places:
        places = math.ceil(math.log10(minor_units_per_major))
    return Decimal(1).scaleb(-places)


def to_major_units(minor: int, minor_units_per_major: int = 100) -> Decimal:
    """
    Converts minor units to a major-unit Decimal for the API response.

        to_major_units(1050, 100) == Decimal("10.50")
    """
    major = Decimal(minor) / Decimal(minor_units_per_major)
    return major.quantize(_major_quantum(minor_units_per_major), rounding=ROUND_HALF_UP)


def from_major_units(major: Decimal, minor_units_per_major: int = 100) -> int:
    """
    Converts a major-unit Decimal from a request into minor units.

        from_major_units(Decimal("10.50"), 100) == 1050
    """
    return round_half_up(Decimal(major) * Decimal(minor_units_per_major))


def share_percentage(share: int, total: int) -> Decimal:
    """share / total as a percentage with two decimal places; 0.00 for a zero total."""
    if total == 0:
        return Decimal("0.00")
    percentage = Decimal(share) * _HUNDRED / Decimal(total)
    return percentage.quantize(_PERCENT_PLACES, rounding=ROUND_HALF_UP)


def average(total: int, count: int, minor_units_per_major: int = 100) -> Decimal:
    """Major-unit average of `total` minor units over `count` people; 0 when count is 0."""
    if count <= 0:
        return to_major_units(0, minor_units_per_major)
    major = Decimal(total) / Decimal(count) / Decimal(minor_units_per_major)
    return major.quantize(_major_quantum(minor_units_per_major), rounding=ROUND_HALF_UP)
