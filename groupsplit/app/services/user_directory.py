"""
services/user_directory.py — Display-name lookup for response payloads.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupsplit.app.models.user import User

UNKNOWN_USER_NAME = "Unknown"


def get_display_names(user_ids: Iterable[str], session: Session) -> dict[str, str]:
    """Returns {user_id: display_name} for the ids that exist, in one query."""
    ids = set(user_ids)
    if not ids:
        return {}
    stmt = select(User.id, User.display_name).where(User.id.in_(ids))
    return {uid: name for uid, name in session.execute(stmt).all()}
