"""
services/membership_service.py — Group membership checks.

Two questions, two error kinds:
  assert_member       Is the caller in the group?        No → FORBIDDEN (403)
  assert_all_members  Are all named participants in it?  No → PARTICIPANT_NOT_MEMBER (422)

Group membership rows are owned by the group workflow; this module only reads.

Layer rules:
  - No Flask imports. Receives plain ids and a SQLAlchemy session.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.membership import GroupMember


def is_member(user_id: str, group_id: str, session: Session) -> bool:
    """True if user_id has a membership row for group_id."""
    membership = session.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    ).scalar_one_or_none()
    return membership is not None


def assert_member(user_id: str, group_id: str, session: Session) -> None:
    """
    Raises FORBIDDEN (403) if user_id is not a member of group_id.
    Non-members receive 403, not 404.
    """
    if not is_member(user_id, group_id, session):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of group {group_id}.",
            403,
        )


def assert_all_members(
        participant_ids: Iterable[str],
        group_id: str,
        session: Session,
) -> None:
    """
    Raises PARTICIPANT_NOT_MEMBER (422) if any participant lacks membership.

    One query for the whole set, compared by set difference. The error does
    not say which participant failed.
    """
    wanted = set(participant_ids)
    if not wanted:
        return

    stmt = select(GroupMember.user_id).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id.in_(wanted),
    )
    found = set(session.execute(stmt).scalars().all())

    if wanted - found:
        raise AppError(
            ErrorCode.PARTICIPANT_NOT_MEMBER,
            f"Some participants are not members of group {group_id}.",
            422,
            field="participant_ids",
        )
