"""
tests/unit/test_compute_balances.py — Unit tests for the pure balance helpers
in services/settlement_service.py.

  compute_balances      paid / owed / balance per user
  pending_purchase_ids  purchases that have no stored split
  involved_user_ids     purchasers plus split holders

Purchases and splits are SimpleNamespace objects with the attributes the
helpers read. No database.
"""

from __future__ import annotations

from types import SimpleNamespace

from groupsplit.app.services.settlement_service import (
    compute_balances,
    involved_user_ids,
    pending_purchase_ids,
)


def _split(user_id: str, share: int) -> SimpleNamespace:
    return SimpleNamespace(user_id=user_id, share_amount=share)


def _purchase(pid: str, buyer: str, total: int, shares: dict[str, int]) -> SimpleNamespace:
    return SimpleNamespace(
        id=pid,
        purchased_by=buyer,
        total_amount=total,
        splits=[_split(uid, share) for uid, share in shares.items()],
    )


def test_single_purchase_split_equally():
    purchases = [_purchase("p1", "a", 2400, {"a": 800, "b": 800, "c": 800})]
    ledger = compute_balances(purchases)

    assert ledger["a"] == {"paid": 2400, "owed": 800, "balance": 1600}
    assert ledger["b"] == {"paid": 0, "owed": 800, "balance": -800}
    assert ledger["c"] == {"paid": 0, "owed": 800, "balance": -800}


def test_multiple_purchases_accumulate():
    purchases = [
        _purchase("p1", "a", 3000, {"a": 1000, "b": 1000, "c": 1000}),
        _purchase("p2", "b", 600, {"b": 300, "c": 300}),
    ]
    ledger = compute_balances(purchases)

    assert ledger["a"]["balance"] == 2000
    assert ledger["b"]["balance"] == -700
    assert ledger["c"]["balance"] == -1300
    assert sum(entry["balance"] for entry in ledger.values()) == 0


def test_buyer_without_share_is_pure_creditor():
    ledger = compute_balances([_purchase("p1", "a", 1000, {"b": 500, "c": 500})])
    assert ledger["a"] == {"paid": 1000, "owed": 0, "balance": 1000}


def test_purchase_without_splits_is_ignored():
    purchases = [
        _purchase("p1", "a", 1000, {"a": 500, "b": 500}),
        _purchase("p2", "c", 9999, {}),
    ]
    ledger = compute_balances(purchases)

    assert "c" not in ledger
    assert sum(entry["balance"] for entry in ledger.values()) == 0


def test_empty_group_has_no_balances():
    assert compute_balances([]) == {}


def test_pending_purchase_ids():
    purchases = [
        _purchase("p1", "a", 1000, {"a": 1000}),
        _purchase("p2", "b", 200, {}),
        _purchase("p3", "c", 300, {}),
    ]
    assert pending_purchase_ids(purchases) == ["p2", "p3"]


def test_involved_user_ids_includes_buyers_and_split_holders():
    purchases = [
        _purchase("p1", "a", 1000, {"b": 500, "c": 500}),
        _purchase("p2", "d", 200, {}),
    ]
    assert involved_user_ids(purchases) == {"a", "b", "c", "d"}
