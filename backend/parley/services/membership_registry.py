"""Membership Registry — per-(conversation, user) join rows and the authorization gate.

Invariants:
    - require_membership is the only place that decides "is this user a member";
      every message, reaction, typing, preview and read path goes through it
    - mark_read never moves last_read_at backwards and never raises for non-members
    - add_members stamps joined_at == last_read_at == the creation instant
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.errors import ErrorContext, ForbiddenError
from parley.models.conversation_member import ConversationMember
from parley.models.user import User
from parley.schemas.conversation import ReadReceipt

logger = logging.getLogger(__name__)


async def find_membership(
    db: AsyncSession, conversation_id: UUID, user_id: UUID,
) -> ConversationMember | None:
    result = await db.execute(
        select(ConversationMember).where(
            ConversationMember.conversation_id == conversation_id,
            ConversationMember.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def require_membership(
    db: AsyncSession, conversation_id: UUID, user_id: UUID,
) -> ConversationMember:
    """The membership gate. Raises ForbiddenError for non-members."""
    membership = await find_membership(db, conversation_id, user_id)
    if membership is None:
        raise ForbiddenError(
            "you are not a member of this conversation",
            ErrorContext(
                resource_id=str(conversation_id), user_id=str(user_id),
            ),
        )
    return membership


def add_members(
    db: AsyncSession, conversation_id: UUID, user_ids: Iterable[UUID], at: int,
) -> list[ConversationMember]:
    """Stage one membership row per user (caller commits)."""
    rows = [
        ConversationMember(
            conversation_id=conversation_id, user_id=user_id,
            joined_at=at, last_read_at=at,
        )
        for user_id in user_ids
    ]
    db.add_all(rows)
    return rows


async def mark_read(
    db: AsyncSession, clock: Clock, conversation_id: UUID, user_id: UUID,
) -> ReadReceipt:
    """Advance the caller's read cursor to now. Non-members get a null cursor."""
    membership = await find_membership(db, conversation_id, user_id)
    if membership is None:
        return ReadReceipt(conversation_id=conversation_id, last_read_at=None)

    now = clock.now_ms()
    membership.last_read_at = max(membership.last_read_at, now)
    await db.commit()
    return ReadReceipt(
        conversation_id=conversation_id, last_read_at=membership.last_read_at,
    )


async def load_participants(
    db: AsyncSession, conversation_ids: Iterable[UUID],
) -> dict[UUID, list[User]]:
    """Profiles of every member of every given conversation, in one query."""
    ids = set(conversation_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(ConversationMember.conversation_id, User)
        .join(User, User.id == ConversationMember.user_id)
        .where(ConversationMember.conversation_id.in_(ids))
        .order_by(ConversationMember.joined_at, User.name, User.id),
    )
    participants: dict[UUID, list[User]] = {cid: [] for cid in ids}
    for conversation_id, user in result.all():
        participants[conversation_id].append(user)
    return participants
