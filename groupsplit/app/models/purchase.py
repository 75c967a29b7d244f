"""
models/purchase.py — Purchase and PurchaseItem table definitions.

Purchases are recorded by the purchasing workflow and are read-only to the
split engine. No business logic. No imports from services or routes.

Key design points:
  - `total_amount` is an INTEGER count of minor currency units (sen, cents).
    Money is never stored as Float or as major-unit decimals.
  - Item `quantity` is Numeric because goods can be bought by weight.
  - Both child tables (purchase_items, splits) are ON DELETE CASCADE.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupsplit.app.extensions import db


class Purchase(db.Model):
    __tablename__ = "purchases"

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_purchases_total_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    group_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # The member who paid for the purchase on behalf of the group.
    purchased_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Minor currency units.
    total_amount: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="JPY",
        server_default="JPY",
    )

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    group: Mapped["Group"] = relationship(  # noqa: F821
        "Group",
        back_populates="purchases",
    )

    purchaser: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[purchased_by],
    )

    items: Mapped[list["PurchaseItem"]] = relationship(
        "PurchaseItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    splits: Mapped[list["Split"]] = relationship(  # noqa: F821
        "Split",
        back_populates="purchase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Split.id",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Purchase id={self.id!r} "
            f"group_id={self.group_id!r} "
            f"total_amount={self.total_amount}>"
        )


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_purchase_items_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    purchase_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("purchases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(
        Numeric(12, 3),
        nullable=False,
        default=Decimal("1"),
        server_default="1",
    )

    # Minor currency units; informational only.
    unit_price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    purchase: Mapped["Purchase"] = relationship(
        "Purchase",
        back_populates="items",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<PurchaseItem id={self.id} "
            f"purchase_id={self.purchase_id!r} "
            f"quantity={self.quantity}>"
        )
