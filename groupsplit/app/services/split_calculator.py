"""
services/split_calculator.py — Divides a purchase total among participants.

Public contract:
    compute(purchase, rule, participant_ids, custom_splits=None) -> list[dict]

Each returned dict is {"user_id": str, "share_amount": int, "rule": SplitRule}.
The function is pure: no session, no I/O, same input → same output.

Guarantee (checked before returning):
    sum(share_amount) == purchase.total_amount, exactly, in minor units.

Rules:
  equal     base = total // n, remainder = total % n. Participants are sorted
            by id; the first `remainder` of them receive base + 1.
  quantity  weight_i = quantity_i / total_quantity, share_i = round(total * weight_i).
            Purchase items carry no per-participant attribution, so quantity_i
            is the total quantity spread evenly over participants. A zero total
            quantity falls back to the equal rule. The rounding difference goes
            to the first participant in input order.
  custom    The caller gives a percentage per user; they must sum to 100 within
            ±0.01. share_i = round(total * pct_i / 100). The rounding
            difference goes to the first entry in custom-split order.

All rounding is half-up (services/money.py). A single participant always
receives the whole total; a zero total yields zero shares.
"""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import Iterable

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.split import SplitRule
from groupsplit.app.services import money

PERCENTAGE_TOTAL = Decimal("100")
PERCENTAGE_TOLERANCE = Decimal("0.01")


# ── Private helpers ────────────────────────────────────────────────────────

def _shares(user_ids: Iterable[str], amounts: Iterable[int], rule: SplitRule) -> list[dict]:
    return [
        {"user_id": uid, "share_amount": amount, "rule": rule}
        for uid, amount in zip(user_ids, amounts)
    ]


def _total_quantity(items) -> Fraction:
    """Sum of item quantities as an exact Fraction (quantities may be Decimal)."""
    return sum((Fraction(item.quantity) for item in items), Fraction(0))


def _participant_quantities(items, participant_ids: list[str]) -> dict[str, Fraction]:
    """
    Quantity attributed to each participant.

    Items are not attributed to individual people, so every participant is
    credited with an equal slice of the purchase's total quantity.
    """
    total_quantity = _total_quantity(items)
    per_person = total_quantity / len(participant_ids)
    return {uid: per_person for uid in participant_ids}


def _validate_percentages(custom_splits: list[dict]) -> None:
    """
    Raises PERCENTAGE_SUM_MISMATCH (422) unless percentages sum to 100 ± 0.01.
    Decimal arithmetic only.
    """
    total = sum((Decimal(s["percentage"]) for s in custom_splits), Decimal("0"))
    if abs(total - PERCENTAGE_TOTAL) > PERCENTAGE_TOLERANCE:
        raise AppError(
            ErrorCode.PERCENTAGE_SUM_MISMATCH,
            f"Custom split percentages must sum to 100 (got {total}).",
            422,
            field="custom_splits",
        )


def _assert_exact_sum(splits: list[dict], total: int) -> None:
    """A mismatch here is a programming error, not bad input."""
    computed = sum(s["share_amount"] for s in splits)
    if computed != total:
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Split computation produced sum {computed} for total {total}. "
            f"This is a bug; please report it.",
            500,
        )


# ── Rule implementations ───────────────────────────────────────────────────

def equal_split(
        total: int,
        participant_ids: list[str],
        rule: SplitRule = SplitRule.EQUAL,
) -> list[dict]:
    """
    Equal shares; the remainder goes one unit at a time in sorted-id order.

        equal_split(1000, ["a", "b", "c"]) → a=334, b=333, c=333
        equal_split(1001, ["c", "b", "a"]) → a=334, b=334, c=333

    `rule` is the tag written on each share; the quantity rule passes its own
    tag when it falls back to an even split.
    """
    count = len(participant_ids)
    base, remainder = divmod(total, count)
    ordered = sorted(participant_ids)
    amounts = [base + 1 if index < remainder else base for index in range(count)]
    return _shares(ordered, amounts, rule)


def quantity_split(total: int, participant_ids: list[str], items) -> list[dict]:
    """Shares proportional to each participant's quantity; see module docstring."""
    if _total_quantity(items) == 0:
        return equal_split(total, participant_ids, SplitRule.QUANTITY)

    quantities = _participant_quantities(items, participant_ids)
    total_quantity = sum(quantities.values(), Fraction(0))

    amounts = [
        money.round_half_up(total * quantities[uid] / total_quantity)
        for uid in participant_ids
    ]
    amounts = money.reconcile_remainder(amounts, total, designated_index=0)
    return _shares(participant_ids, amounts, SplitRule.QUANTITY)


def custom_split(total: int, custom_splits: list[dict] | None) -> list[dict]:
    """Shares from caller-supplied percentages; see module docstring."""
    if not custom_splits:
        raise AppError(
            ErrorCode.CUSTOM_SPLITS_REQUIRED,
            "custom_splits is required when rule is 'custom'.",
            400,
            field="custom_splits",
        )

    _validate_percentages(custom_splits)

    amounts = [money.percentage_of(total, s["percentage"]) for s in custom_splits]
    amounts = money.reconcile_remainder(amounts, total, designated_index=0)
    return _shares((s["user_id"] for s in custom_splits), amounts, SplitRule.CUSTOM)


# ── Public entry point ─────────────────────────────────────────────────────

def compute(
        purchase,
        rule: SplitRule,
        participant_ids: list[str],
        custom_splits: list[dict] | None = None,
) -> list[dict]:
    """
    Computes every participant's share of `purchase.total_amount`.

    Args:
        purchase:        Anything with `total_amount` (int, minor units) and
                         `items` (each with a `quantity`).
        rule:            SplitRule (or its string value).
        participant_ids: Users sharing the purchase. For the custom rule the
                         shares are taken from `custom_splits` instead.
        custom_splits:   [{"user_id": str, "percentage": Decimal}], custom rule only.

    Raises:
        AppError(NO_PARTICIPANTS, 400)          — nobody to split between.
        AppError(CUSTOM_SPLITS_REQUIRED, 400)   — custom rule without percentages.
        AppError(PERCENTAGE_SUM_MISMATCH, 422)  — percentages not 100 ± 0.01.
        AppError(INVALID_SPLIT_RULE, 400)       — unknown rule.
    """
    try:
        rule = SplitRule(rule)
    except ValueError:
        raise AppError(
            ErrorCode.INVALID_SPLIT_RULE,
            f"'{rule}' is not a valid split rule. "
            f"Valid values: {', '.join(r.value for r in SplitRule)}.",
            400,
            field="rule",
        )

    total: int = purchase.total_amount
    participant_ids = list(participant_ids or [])

    if rule == SplitRule.CUSTOM:
        splits = custom_split(total, custom_splits)
    else:
        if not participant_ids:
            raise AppError(
                ErrorCode.NO_PARTICIPANTS,
                "At least one participant is required.",
                400,
                field="participant_ids",
            )
        if len(participant_ids) == 1:
            # One participant pays for everything, whatever the rule.
            splits = _shares(participant_ids, [total], rule)
        elif rule == SplitRule.EQUAL:
            splits = equal_split(total, participant_ids)
        else:
            splits = quantity_split(total, participant_ids, purchase.items)

    _assert_exact_sum(splits, total)
    return splits
