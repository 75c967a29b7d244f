"""
models/user.py — User table definition.

Users are owned by the account workflow; this engine only reads them to
attach display names to split and settlement results.
No business logic. No imports from services or routes.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from groupsplit.app.extensions import db


class User(db.Model):
    __tablename__ = "users"

    # Opaque string ids (UUIDs upstream). Equal splits order participants by
    # this value, so it must compare lexicographically.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["GroupMember"]] = relationship(  # noqa: F821
        "GroupMember",
        back_populates="user",
    )

    # Splits assigned to this user
    splits: Mapped[list["Split"]] = relationship(  # noqa: F821
        "Split",
        back_populates="user",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id!r} display_name={self.display_name!r}>"
