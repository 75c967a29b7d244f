"""
services/split_repository.py — Persistence of computed split sets.

save()  replaces every split of a purchase with a new set: delete all, then
        insert all, inside the caller's transaction. It is never a merge.
load()  returns the current set, or SPLITS_NOT_FOUND (404) if there is none.

Atomicity:
  The delete and the insert run in the same session transaction and are
  flushed, not committed; the route commits once. If either step fails the
  session is rolled back before the error propagates, so a purchase never
  ends up with zero or partial splits.

Layer rules:
  - No Flask imports. Only flush here; commits are the route's responsibility.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.split import Split

logger = logging.getLogger(__name__)


def _existing_splits(purchase_id: str, session: Session) -> list[Split]:
    stmt = (
        select(Split)
        .where(Split.purchase_id == purchase_id)
        .order_by(Split.id)
    )
    return list(session.execute(stmt).scalars().all())


def save(purchase_id: str, splits: list[dict], session: Session) -> list[Split]:
    """
    Atomically replaces the split set of a purchase.

    Args:
        purchase_id: Purchase whose splits are replaced.
        splits:      [{"user_id", "share_amount", "rule"}] from split_calculator.compute().

    Returns:
        The newly created Split rows, in the order given.
    """
    try:
        for old in _existing_splits(purchase_id, session):
            session.delete(old)
        # Deletes must reach the DB before inserts: UNIQUE(purchase_id, user_id).
        session.flush()

        rows = [
            Split(
                purchase_id=purchase_id,
                user_id=s["user_id"],
                share_amount=s["share_amount"],
                rule=s["rule"],
            )
            for s in splits
        ]
        session.add_all(rows)
        session.flush()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Replacing splits for purchase %s failed; rolled back.", purchase_id)
        raise

    logger.info("Stored %d splits for purchase %s.", len(rows), purchase_id)
    return rows


def load(purchase_id: str, session: Session) -> list[Split]:
    """
    Returns the persisted splits of a purchase in insertion order.

    Raises:
        AppError(SPLITS_NOT_FOUND, 404) — no split has been stored yet.
    """
    rows = _existing_splits(purchase_id, session)
    if not rows:
        raise AppError(
            ErrorCode.SPLITS_NOT_FOUND,
            f"No splits found for purchase {purchase_id}.",
            404,
        )
    return rows
