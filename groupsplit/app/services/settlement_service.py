"""
services/settlement_service.py — Group balances and settlement instructions.

This file is the single place where group balances are computed. Settlement
instructions are never stored: every request recomputes them from the current
purchases and splits, so there is no cached table to go stale.

Balance formula (minor units, per user):
    paid    = sum(purchase.total_amount) over purchases the user bought
    owed    = sum(split.share_amount)    over splits assigned to the user
    balance = paid - owed                (> 0 creditor, < 0 debtor)

Only purchases that already have a stored split contribute to balances. A
purchase without splits would credit its buyer with money nobody owes; such
purchases are reported as pending instead. Because every stored split set sums
to its purchase total, the balances of a group always sum to zero.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - compute_balances() and simplify_debts() take plain data and are
    unit-testable without a database.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.group import Group
from groupsplit.app.models.purchase import Purchase
from groupsplit.app.services import membership_service, money
from groupsplit.app.services.user_directory import UNKNOWN_USER_NAME, get_display_names

logger = logging.getLogger(__name__)


# ── Data access helpers ────────────────────────────────────────────────────

def _get_group_or_404(group_id: str, session: Session) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND (404)."""
    group = session.get(Group, group_id)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )
    return group


def get_group_purchases(group_id: str, session: Session) -> list[Purchase]:
    """
    Returns every purchase of a group with its splits eagerly loaded.

    Purchases and splits are read in the same transaction so balances are
    computed against one snapshot.
    """
    stmt = (
        select(Purchase)
        .where(Purchase.group_id == group_id)
        .options(selectinload(Purchase.splits))
        .order_by(Purchase.purchased_at, Purchase.id)
    )
    return list(session.execute(stmt).scalars().all())


# ── Core algorithms ────────────────────────────────────────────────────────

def compute_balances(purchases) -> dict[str, dict[str, int]]:
    """
    Returns {user_id: {"paid": int, "owed": int, "balance": int}}.

    Args:
        purchases: objects with `purchased_by`, `total_amount` and `splits`
                   (each split with `user_id` and `share_amount`).
    """
    ledger: dict[str, dict[str, int]] = {}

    def _entry(user_id: str) -> dict[str, int]:
        return ledger.setdefault(user_id, {"paid": 0, "owed": 0, "balance": 0})

    for purchase in purchases:
        if not purchase.splits:
            continue
        _entry(purchase.purchased_by)["paid"] += purchase.total_amount
        for split in purchase.splits:
            _entry(split.user_id)["owed"] += split.share_amount

    for entry in ledger.values():
        entry["balance"] = entry["paid"] - entry["owed"]

    return ledger


def pending_purchase_ids(purchases) -> list[str]:
    """Ids of purchases that have no stored split yet."""
    return [p.id for p in purchases if not p.splits]


def involved_user_ids(purchases) -> set[str]:
    """Every user who bought something or holds a split in the group."""
    users: set[str] = set()
    for purchase in purchases:
        users.add(purchase.purchased_by)
        users.update(split.user_id for split in purchase.splits)
    return users


def simplify_debts(balances: dict[str, int]) -> list[dict]:
    """
    Greedy netting of balances into settlement instructions.

    Creditors are sorted by balance and debtors by amount owed, both largest
    first (ties by user id). The largest remaining debtor pays the largest
    remaining creditor min(owed, owed_to); a party is passed over once its
    remaining balance reaches zero. Not guaranteed to be the global minimum
    number of transfers, but at most N-1 for N non-zero balances.

    Args:
        balances: {user_id: net_balance} in minor units, summing to zero.

    Returns:
        [{"debtor_id": str, "creditor_id": str, "amount": int}] with amount > 0.
    """
    creditors = sorted(
        ([uid, amount] for uid, amount in balances.items() if amount > 0),
        key=lambda pair: (-pair[1], pair[0]),
    )
    debtors = sorted(
        ([uid, -amount] for uid, amount in balances.items() if amount < 0),
        key=lambda pair: (-pair[1], pair[0]),
    )

    instructions: list[dict] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        creditor_id, credit = creditors[i]
        debtor_id, debt = debtors[j]

        amount = min(credit, debt)
        instructions.append({
            "debtor_id": debtor_id,
            "creditor_id": creditor_id,
            "amount": amount,
        })

        creditors[i][1] -= amount
        debtors[j][1] -= amount

        if creditors[i][1] == 0:
            i += 1
        if debtors[j][1] == 0:
            j += 1

    return instructions


# ── Public service functions ───────────────────────────────────────────────

def get_group_settlement(
        group_id: str,
        caller_id: str,
        session: Session,
        minor_units_per_major: int = 100,
) -> dict:
    """
    Builds the settlement summary for GET /splits/groups/:id/settlement.

    Raises:
        AppError(GROUP_NOT_FOUND, 404)  — group does not exist.
        AppError(FORBIDDEN, 403)        — caller is not a group member.
        AppError(INTERNAL_ERROR, 500)   — stored splits do not balance.
    """
    group = _get_group_or_404(group_id, session)
    membership_service.assert_member(caller_id, group_id, session)

    purchases = get_group_purchases(group_id, session)
    ledger = compute_balances(purchases)
    balances = {uid: entry["balance"] for uid, entry in ledger.items()}

    balance_sum = sum(balances.values())
    if balance_sum != 0:
        logger.error(
            "Balance integrity check failed for group %s: sum was %d.",
            group_id,
            balance_sum,
        )
        raise AppError(
            ErrorCode.INTERNAL_ERROR,
            f"Balance integrity check failed: sum was {balance_sum} (expected 0). "
            f"Group {group_id} has inconsistent split data.",
            500,
        )

    instructions = simplify_debts(balances)
    people = involved_user_ids(purchases)
    names = get_display_names(people, session)
    total_spent = sum(p.total_amount for p in purchases)

    logger.debug(
        "Settlement for group %s: %d purchases, %d instructions.",
        group_id,
        len(purchases),
        len(instructions),
    )

    def _major(amount: int):
        return money.to_major_units(amount, minor_units_per_major)

    return {
        "group_id": group_id,
        "group_name": group.name,
        "settlements": [
            {
                "debtor_id": t["debtor_id"],
                "debtor_name": names.get(t["debtor_id"], UNKNOWN_USER_NAME),
                "creditor_id": t["creditor_id"],
                "creditor_name": names.get(t["creditor_id"], UNKNOWN_USER_NAME),
                "amount": _major(t["amount"]),
            }
            for t in instructions
        ],
        "balances": [
            {
                "user_id": uid,
                "name": names.get(uid, UNKNOWN_USER_NAME),
                "paid": _major(entry["paid"]),
                "owed": _major(entry["owed"]),
                "balance": _major(entry["balance"]),
            }
            for uid, entry in sorted(ledger.items())
        ],
        "pending_purchase_ids": pending_purchase_ids(purchases),
        "total_spent": _major(total_spent),
        "average_per_person": money.average(total_spent, len(people), minor_units_per_major),
        "calculated_at": datetime.now(timezone.utc).isoformat(),
    }
