"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session with create_app("testing"), which
    points at in-memory SQLite unless TEST_DATABASE_URL names a real database.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - Users, groups, memberships and purchases belong to other workflows and
    have no endpoints here, so they are seeded directly through the ORM.
  - Tokens are minted with PyJWT using the testing JWT_SECRET_KEY, the same
    way the external identity service signs them.

Helper functions (not fixtures), callable with arbitrary arguments:
  - make_token(user_id, ...)           → encoded JWT
  - auth_headers(user_id)              → {"Authorization": "Bearer <token>"}
  - seed_group(app, members, ...)      → group id
  - seed_purchase(app, group_id, ...)  → purchase id
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest
from sqlalchemy import delete

from groupsplit.app import create_app
from groupsplit.app.extensions import db as _db
from groupsplit.app.models.group import Group
from groupsplit.app.models.membership import GroupMember
from groupsplit.app.models.purchase import Purchase, PurchaseItem
from groupsplit.app.models.split import Split
from groupsplit.app.models.user import User

TEST_JWT_SECRET = "testing-secret"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the testing app and its schema once for the whole session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test, children before parents."""
    yield

    with app.app_context():
        _db.session.rollback()
        for model in (Split, PurchaseItem, Purchase, GroupMember, Group, User):
            _db.session.execute(delete(model))
        _db.session.commit()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_token(
    user_id: str,
    secret: str = TEST_JWT_SECRET,
    expires_in: timedelta = timedelta(minutes=15),
) -> str:
    """HS256 access token with `sub` = user_id. A negative expires_in yields an expired token."""
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def seed_users(app, *user_ids: str) -> None:
    """Creates users whose display name is the capitalised id ("alice" → "Alice")."""
    with app.app_context():
        for uid in user_ids:
            if _db.session.get(User, uid) is None:
                _db.session.add(User(id=uid, display_name=uid.capitalize()))
        _db.session.commit()


def seed_group(
    app,
    members: tuple[str, ...] = ("alice", "bob", "carol"),
    group_id: str = "g-trip",
    name: str = "Trip",
) -> str:
    """Creates a group with the given members (users are created as needed)."""
    seed_users(app, *members)
    with app.app_context():
        _db.session.add(Group(id=group_id, name=name))
        _db.session.flush()
        for uid in members:
            _db.session.add(GroupMember(user_id=uid, group_id=group_id))
        _db.session.commit()
    return group_id


def seed_purchase(
    app,
    group_id: str,
    purchased_by: str,
    total_amount: int,
    purchase_id: str = "p-1",
    quantities: tuple[str, ...] = (),
) -> str:
    """Creates a purchase of `total_amount` minor units with one item per quantity."""
    with app.app_context():
        purchase = Purchase(
            id=purchase_id,
            group_id=group_id,
            purchased_by=purchased_by,
            total_amount=total_amount,
        )
        purchase.items = [
            PurchaseItem(name=f"item-{index}", quantity=Decimal(q))
            for index, q in enumerate(quantities)
        ]
        _db.session.add(purchase)
        _db.session.commit()
    return purchase_id


def store_split(client, purchase_id: str, caller: str, body: dict):
    """POST /splits/purchases/:id — returns the raw response."""
    return client.post(
        f"/api/v1/splits/purchases/{purchase_id}",
        json=body,
        headers=auth_headers(caller),
    )
