"""
services/split_service.py — Split preview, confirmation and retrieval.

Request flow (all checks run before any arithmetic or write):
  1. Load the purchase                     → PURCHASE_NOT_FOUND (404)
  2. Caller must be a group member         → FORBIDDEN (403)
  3. Every participant must be a member    → PARTICIPANT_NOT_MEMBER (422)
  4. split_calculator.compute()            → CUSTOM_SPLITS_REQUIRED (400),
                                             PERCENTAGE_SUM_MISMATCH (422)
  5. Preview returns the result; confirm stores it with split_repository.save()

Amounts are minor-unit ints until the response dict is built, where they are
converted to major-unit Decimals (serialised as strings by the JSON provider).

Layer rules:
  - No Flask imports. Receives plain ids and dicts; returns plain dicts.
  - Commits are the route's responsibility. Only flush here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.purchase import Purchase
from groupsplit.app.models.split import SplitRule
from groupsplit.app.services import membership_service, money, split_calculator, split_repository
from groupsplit.app.services.user_directory import UNKNOWN_USER_NAME, get_display_names


# ── Private helpers ────────────────────────────────────────────────────────

def _get_purchase_or_404(purchase_id: str, session: Session) -> Purchase:
    """Returns the Purchase with its items loaded, or raises PURCHASE_NOT_FOUND (404)."""
    stmt = (
        select(Purchase)
        .where(Purchase.id == purchase_id)
        .options(selectinload(Purchase.items))
    )
    purchase = session.execute(stmt).scalar_one_or_none()
    if purchase is None:
        raise AppError(
            ErrorCode.PURCHASE_NOT_FOUND,
            f"Purchase {purchase_id} does not exist.",
            404,
        )
    return purchase


def _users_to_validate(data: dict) -> list[str]:
    """Participants plus, for the custom rule, every user named in custom_splits."""
    users = list(data.get("participant_ids") or [])
    if data.get("rule") == SplitRule.CUSTOM:
        users.extend(s["user_id"] for s in data.get("custom_splits") or [])
    return users


def _prepare_splits(purchase_id: str, caller_id: str, data: dict, session: Session):
    """Runs steps 1-4 of the request flow and returns (purchase, computed splits)."""
    purchase = _get_purchase_or_404(purchase_id, session)
    membership_service.assert_member(caller_id, purchase.group_id, session)
    membership_service.assert_all_members(_users_to_validate(data), purchase.group_id, session)

    splits = split_calculator.compute(
        purchase,
        data["rule"],
        data["participant_ids"],
        data.get("custom_splits"),
    )
    return purchase, splits


def _build_result(
        purchase: Purchase,
        splits: list[dict],
        rule: SplitRule,
        session: Session,
        minor_units_per_major: int,
) -> dict:
    """Shapes a split set into the API payload (major units, display names)."""
    names = get_display_names((s["user_id"] for s in splits), session)
    total = purchase.total_amount

    return {
        "purchase_id": purchase.id,
        "total_amount": money.to_major_units(total, minor_units_per_major),
        "splits": [
            {
                "user_id": s["user_id"],
                "user_name": names.get(s["user_id"], UNKNOWN_USER_NAME),
                "share_amount": money.to_major_units(s["share_amount"], minor_units_per_major),
                "share_percentage": money.share_percentage(s["share_amount"], total),
                "rule": SplitRule(s["rule"]).value,
            }
            for s in splits
        ],
        "rule": SplitRule(rule).value,
        "calculated_at": datetime.now(timezone.utc).isoformat(),
    }


# ── Public service functions ───────────────────────────────────────────────

def calculate_split(
        purchase_id: str,
        caller_id: str,
        data: dict,
        session: Session,
        minor_units_per_major: int = 100,
) -> dict:
    """
    Computes a split without storing it (preview).

    Args:
        purchase_id: The purchase to split.
        caller_id:   Authenticated user (from flask.g).
        data:        Validated dict from SplitRequestSchema.
    """
    purchase, splits = _prepare_splits(purchase_id, caller_id, data, session)
    return _build_result(purchase, splits, data["rule"], session, minor_units_per_major)


def create_split(
        purchase_id: str,
        caller_id: str,
        data: dict,
        session: Session,
        minor_units_per_major: int = 100,
) -> dict:
    """
    Computes a split and replaces the purchase's stored split set with it.

    Returns the stored result, read back through split_repository.load().
    """
    purchase, splits = _prepare_splits(purchase_id, caller_id, data, session)
    split_repository.save(purchase.id, splits, session)
    return _stored_result(purchase, session, minor_units_per_major)


def get_split(
        purchase_id: str,
        caller_id: str,
        session: Session,
        minor_units_per_major: int = 100,
) -> dict:
    """
    Returns the currently stored split of a purchase.

    Raises:
        AppError(PURCHASE_NOT_FOUND, 404)
        AppError(FORBIDDEN, 403)
        AppError(SPLITS_NOT_FOUND, 404) — the purchase has never been split.
    """
    purchase = _get_purchase_or_404(purchase_id, session)
    membership_service.assert_member(caller_id, purchase.group_id, session)
    return _stored_result(purchase, session, minor_units_per_major)


def _stored_result(purchase: Purchase, session: Session, minor_units_per_major: int) -> dict:
    rows = split_repository.load(purchase.id, session)
    splits = [
        {"user_id": r.user_id, "share_amount": r.share_amount, "rule": r.rule}
        for r in rows
    ]
    # One rule per purchase: the whole set is always written together.
    return _build_result(purchase, splits, rows[0].rule, session, minor_units_per_major)
