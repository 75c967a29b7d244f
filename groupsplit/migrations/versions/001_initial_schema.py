"""Initial schema — users, groups, memberships, purchases, items, splits.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  Schema changes go in a NEW migration file.

Creation order:
  Tables in FK dependency order (users → groups → group_members → purchases
  → purchase_items → splits), then indexes.

Money columns (purchases.total_amount, purchase_items.unit_price,
splits.share_amount) are INTEGER minor units.

splits.rule is VARCHAR(16) + CHECK rather than a PostgreSQL enum type, so the
same DDL runs against SQLite in tests.

ON DELETE policies:
  group_members.*          → CASCADE   (membership owned by user and group)
  purchases.group_id       → CASCADE
  purchases.purchased_by   → RESTRICT  (cannot delete a user who paid)
  purchase_items.*         → CASCADE   (owned by purchase)
  splits.purchase_id       → CASCADE   (owned by purchase)
  splits.user_id           → CASCADE
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
    )

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_group_members_user"),
            nullable=False,
        ),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_group_members_group"),
            nullable=False,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_group_members"),
        sa.UniqueConstraint("user_id", "group_id", name="uq_group_members_user_group"),
    )

    op.create_table(
        "purchases",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "group_id",
            sa.String(36),
            sa.ForeignKey("groups.id", ondelete="CASCADE", name="fk_purchases_group"),
            nullable=False,
        ),
        sa.Column(
            "purchased_by",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_purchases_purchaser"),
            nullable=False,
        ),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="JPY"),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "purchased_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_purchases"),
        sa.CheckConstraint("total_amount >= 0", name="ck_purchases_total_non_negative"),
    )

    op.create_table(
        "purchase_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "purchase_id",
            sa.String(36),
            sa.ForeignKey("purchases.id", ondelete="CASCADE", name="fk_purchase_items_purchase"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_purchase_items"),
        sa.CheckConstraint("quantity >= 0", name="ck_purchase_items_quantity_non_negative"),
    )

    op.create_table(
        "splits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "purchase_id",
            sa.String(36),
            sa.ForeignKey("purchases.id", ondelete="CASCADE", name="fk_splits_purchase"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_splits_user"),
            nullable=False,
        ),
        sa.Column("share_amount", sa.Integer(), nullable=False),
        sa.Column("rule", sa.String(16), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_splits"),
        sa.UniqueConstraint("purchase_id", "user_id", name="uq_splits_purchase_user"),
        sa.CheckConstraint("share_amount >= 0", name="ck_splits_share_non_negative"),
        sa.CheckConstraint(
            "rule IN ('equal', 'quantity', 'custom')",
            name="split_rule_enum",
        ),
    )

    # Index names match SQLAlchemy's ix_<table>_<column> so autogenerate
    # sees no drift against the models' index=True columns.
    op.create_index("ix_group_members_user_id", "group_members", ["user_id"])
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])
    op.create_index("ix_purchases_group_id", "purchases", ["group_id"])
    op.create_index("ix_purchase_items_purchase_id", "purchase_items", ["purchase_id"])
    op.create_index("ix_splits_purchase_id", "splits", ["purchase_id"])


def downgrade() -> None:
    """Drops everything created in upgrade(), in reverse dependency order."""
    op.drop_index("ix_splits_purchase_id", table_name="splits")
    op.drop_index("ix_purchase_items_purchase_id", table_name="purchase_items")
    op.drop_index("ix_purchases_group_id", table_name="purchases")
    op.drop_index("ix_group_members_group_id", table_name="group_members")
    op.drop_index("ix_group_members_user_id", table_name="group_members")

    op.drop_table("splits")
    op.drop_table("purchase_items")
    op.drop_table("purchases")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")
