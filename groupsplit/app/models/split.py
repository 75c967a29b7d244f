"""
models/split.py — Split table definition.

One row is one participant's share of one purchase.
No business logic. No imports from services or routes.

Key design points:
  - `share_amount` is an INTEGER count of minor units and never negative.
  - purchase_id is ON DELETE CASCADE; splits are owned by their purchase.
  - UNIQUE(purchase_id, user_id): a user appears once per purchase.
  - The set of rows for a purchase is only ever replaced as a whole by
    services/split_repository.py; rows are never updated in place.

sum(share_amount) == purchases.total_amount is enforced by the split
calculator before anything is written.
"""

from __future__ import annotations

import enum

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupsplit.app.extensions import db


class SplitRule(str, enum.Enum):
    """How a purchase total is divided among its participants."""
    EQUAL    = "equal"
    QUANTITY = "quantity"
    CUSTOM   = "custom"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'custom'), not names ('CUSTOM')."""
    return [member.value for member in enum_cls]


class Split(db.Model):
    __tablename__ = "splits"

    __table_args__ = (
        UniqueConstraint("purchase_id", "user_id", name="uq_splits_purchase_user"),
        CheckConstraint("share_amount >= 0", name="ck_splits_share_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    purchase_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("purchases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Minor currency units.
    share_amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Stored as VARCHAR + CHECK (native_enum=False) so the same schema runs on
    # PostgreSQL and SQLite.
    rule: Mapped[SplitRule] = mapped_column(
        Enum(
            SplitRule,
            name="split_rule_enum",
            native_enum=False,
            length=16,
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    purchase: Mapped["Purchase"] = relationship(  # noqa: F821
        "Purchase",
        back_populates="splits",
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="splits",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Split id={self.id} "
            f"purchase_id={self.purchase_id!r} "
            f"user_id={self.user_id!r} "
            f"share_amount={self.share_amount} "
            f"rule={self.rule.value}>"
        )
