"""
tests/unit/test_money.py — Unit tests for services/money.py.

What this file proves:
  - Rounding is half-up, never banker's rounding
  - reconcile_remainder always lands on the exact total without negative shares
  - Major/minor conversion is exact at the HTTP boundary
  - Percentages and averages are quantised to the expected places

No database, no Flask.
"""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction

import pytest

from groupsplit.app.services import money


# ── round_half_up ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("value, expected", [
    (Decimal("2.5"), 3),
    (Decimal("3.5"), 4),
    (Decimal("2.4999"), 2),
    (Fraction(5, 2), 3),        # round() would give 2
    (Fraction(7, 2), 4),
    (Fraction(1, 3), 0),
    (Decimal("-2.5"), -3),
    (Fraction(-5, 2), -3),
    (7, 7),
])
def test_round_half_up(value, expected):
    assert money.round_half_up(value) == expected


def test_percentage_of_rounds_half_up():
    assert money.percentage_of(1001, Decimal("50")) == 501
    assert money.percentage_of(1000, Decimal("33.33")) == 333
    assert money.percentage_of(0, Decimal("100")) == 0


# ── reconcile_remainder ────────────────────────────────────────────────────

def test_reconcile_adds_shortfall_to_designated_share():
    assert money.reconcile_remainder([333, 333, 333], 1000) == [334, 333, 333]


def test_reconcile_removes_excess_from_designated_share():
    assert money.reconcile_remainder([501, 501], 1001) == [500, 501]


def test_reconcile_does_not_mutate_input():
    shares = [333, 333, 333]
    money.reconcile_remainder(shares, 1000)
    assert shares == [333, 333, 333]


def test_reconcile_skips_share_that_would_go_negative():
    # The designated share is 0; the excess moves to the next share.
    assert money.reconcile_remainder([0, 5, 6], 10) == [0, 4, 6]


def test_reconcile_drains_when_no_single_share_can_absorb():
    result = money.reconcile_remainder([1, 1, 1, 1, 1, 1, 1], 5)
    assert sum(result) == 5
    assert all(share >= 0 for share in result)


def test_reconcile_exact_sum_is_unchanged():
    assert money.reconcile_remainder([250, 750], 1000) == [250, 750]


def test_reconcile_rejects_negative_total():
    with pytest.raises(ValueError):
        money.reconcile_remainder([1, 2], -1)


# ── Boundary conversion ────────────────────────────────────────────────────

def test_to_major_units_keeps_two_places():
    result = money.to_major_units(1050, 100)
    assert result == Decimal("10.50")
    assert str(result) == "10.50"


def test_to_major_units_zero_decimal_currency():
    assert str(money.to_major_units(1050, 1)) == "1050"


def test_to_major_units_three_decimal_currency():
    assert str(money.to_major_units(1050, 1000)) == "1.050"


def test_from_major_units():
    assert money.from_major_units(Decimal("10.50"), 100) == 1050
    assert money.from_major_units(Decimal("0.005"), 100) == 1


# ── Derived figures ────────────────────────────────────────────────────────

def test_share_percentage():
    assert money.share_percentage(334, 1000) == Decimal("33.40")
    assert money.share_percentage(1, 3) == Decimal("33.33")
    assert money.share_percentage(2, 3) == Decimal("66.67")


def test_share_percentage_of_zero_total_is_zero():
    assert money.share_percentage(0, 0) == Decimal("0.00")


def test_average():
    assert money.average(1000, 3, 100) == Decimal("3.33")
    assert money.average(2900, 3, 100) == Decimal("9.67")


def test_average_of_nobody_is_zero():
    assert money.average(1000, 0, 100) == Decimal("0.00")
