"""Conversation Directory — finds or creates DMs and creates groups.

Invariants:
    - At most one DM per unordered pair: dm_key lookup and insert share a
      transaction, and uq_conversations_dm_key rejects the loser of any race
    - All validation runs before the first write
    - A new conversation and all of its memberships commit together

Design Decisions:
    - Losing a DM insert race is not an error: the loser rolls back and returns
      the winner's id, so every caller sees the same conversation
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.conversation_rules import (
    build_dm_key, check_not_self_dm, normalize_group_name, select_group_members,
)
from parley.core.domain_types import ConversationType
from parley.core.errors import ConflictError, ErrorContext, ResourceNotFoundError
from parley.models.conversation import Conversation
from parley.models.user import User
from parley.services import identity_resolver, membership_registry

logger = logging.getLogger(__name__)


async def find_dm_by_key(db: AsyncSession, dm_key: str) -> Conversation | None:
    result = await db.execute(
        select(Conversation).where(Conversation.dm_key == dm_key),
    )
    return result.scalar_one_or_none()


async def get_or_create_dm(
    db: AsyncSession, clock: Clock, current_user: User, other_user_id: UUID,
) -> UUID:
    """Return the DM between current_user and other_user_id, creating it once."""
    current_user_id = current_user.id
    check_not_self_dm(current_user_id, other_user_id)

    other_user = await identity_resolver.get_user(db, other_user_id)
    if other_user is None:
        raise ResourceNotFoundError(
            "User", str(other_user_id), ErrorContext(operation="get_or_create_dm"),
        )

    dm_key = build_dm_key(current_user_id, other_user_id)
    existing = await find_dm_by_key(db, dm_key)
    if existing is not None:
        return existing.id

    now = clock.now_ms()
    conversation = Conversation(
        type=ConversationType.DM.value, dm_key=dm_key,
        created_by=current_user_id, created_at=now, updated_at=now,
    )
    try:
        db.add(conversation)
        await db.flush()
        conversation_id = conversation.id
        membership_registry.add_members(
            db, conversation_id, [current_user_id, other_user_id], now,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        winner = await find_dm_by_key(db, dm_key)
        if winner is None:
            raise ConflictError(
                "Direct message could not be created; retry",
                ErrorContext(operation="get_or_create_dm"),
            )
        logger.info(
            "DM insert lost race, returning existing conversation",
            extra={"conversation_id": winner.id, "operation": "get_or_create_dm"},
        )
        return winner.id

    logger.info(
        "DM created",
        extra={"conversation_id": conversation_id, "user_id": current_user_id},
    )
    return conversation_id


async def create_group(
    db: AsyncSession,
    clock: Clock,
    current_user: User,
    name: str,
    member_ids: list[UUID],
) -> UUID:
    """Create a named group of the creator plus at least two other users."""
    current_user_id = current_user.id
    cleaned_name = normalize_group_name(name)
    others = select_group_members(current_user_id, member_ids)

    found = await identity_resolver.load_users(db, others)
    missing = [str(member_id) for member_id in others if member_id not in found]
    if missing:
        raise ResourceNotFoundError(
            "User", ", ".join(missing), ErrorContext(operation="create_group"),
        )

    now = clock.now_ms()
    conversation = Conversation(
        type=ConversationType.GROUP.value, name=cleaned_name,
        created_by=current_user_id, created_at=now, updated_at=now,
    )
    db.add(conversation)
    await db.flush()
    conversation_id = conversation.id
    membership_registry.add_members(
        db, conversation_id, [current_user_id, *others], now,
    )
    await db.commit()

    logger.info(
        "Group created",
        extra={
            "conversation_id": conversation_id, "user_id": current_user_id,
            "count": len(others) + 1,
        },
    )
    return conversation_id
