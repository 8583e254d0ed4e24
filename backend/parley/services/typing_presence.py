"""Typing Presence — ephemeral typing flags with lazy, read-time expiry.

Invariants:
    - One row per (conversation, user): patched in place, inserted only once
    - Liveness is decided only by core.presence_rules.is_typing_visible at read time
    - sweep_expired only deletes rows already stale by more than a grace period,
      so it can never change what list_active returns
    - A row swept between set_typing's read and update is re-inserted once;
      the caller sees the same result as if the sweep had not run
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from parley.core.clock import Clock
from parley.core.errors import ConflictError, ErrorContext
from parley.core.presence_rules import (
    DEFAULT_TYPING_TTL_MS, is_typing_visible, typing_expiry,
)
from parley.models.typing_event import TypingEvent
from parley.models.user import User
from parley.schemas.presence import TypingUser
from parley.services import membership_registry

logger = logging.getLogger(__name__)


async def _upsert_typing(
    db: AsyncSession,
    conversation_id: UUID,
    user_id: UUID,
    expires_at: int,
    now: int,
) -> UUID:
    result = await db.execute(
        select(TypingEvent).where(
            TypingEvent.conversation_id == conversation_id,
            TypingEvent.user_id == user_id,
        ),
    )
    event = result.scalar_one_or_none()
    if event is None:
        event = TypingEvent(
            conversation_id=conversation_id, user_id=user_id,
            expires_at=expires_at, updated_at=now,
        )
        db.add(event)
    else:
        event.expires_at = expires_at
        event.updated_at = now
    await db.flush()
    return event.id


def _typing_conflict(conversation_id: UUID) -> ConflictError:
    return ConflictError(
        "Typing state changed concurrently; retry",
        ErrorContext(operation="set_typing", resource_id=str(conversation_id)),
    )


async def set_typing(
    db: AsyncSession,
    clock: Clock,
    conversation_id: UUID,
    user_id: UUID,
    is_typing: bool,
    ttl_ms: int = DEFAULT_TYPING_TTL_MS,
) -> UUID:
    """Upsert the caller's typing row; stopping makes it stale immediately."""
    await membership_registry.require_membership(db, conversation_id, user_id)

    now = clock.now_ms()
    expires_at = typing_expiry(now, is_typing, ttl_ms)

    try:
        event_id = await _upsert_typing(db, conversation_id, user_id, expires_at, now)
    except StaleDataError:
        # Swept between read and update; the row is gone, so insert it again
        await db.rollback()
        logger.info(
            "Typing row swept mid-update, re-inserting",
            extra={"conversation_id": conversation_id, "user_id": user_id},
        )
        try:
            event_id = await _upsert_typing(
                db, conversation_id, user_id, expires_at, now,
            )
        except (IntegrityError, StaleDataError):
            await db.rollback()
            raise _typing_conflict(conversation_id)
    except IntegrityError:
        await db.rollback()
        raise _typing_conflict(conversation_id)

    await db.commit()
    return event_id


async def list_active(
    db: AsyncSession, clock: Clock, conversation_id: UUID, viewer_id: UUID,
) -> list[TypingUser]:
    """Other members currently typing, as of this call's "now"."""
    await membership_registry.require_membership(db, conversation_id, viewer_id)

    result = await db.execute(
        select(TypingEvent, User)
        .join(User, User.id == TypingEvent.user_id)
        .where(TypingEvent.conversation_id == conversation_id)
        .order_by(TypingEvent.updated_at, TypingEvent.id),
    )
    now = clock.now_ms()
    return [
        TypingUser(user_id=user.id, name=user.name, expires_at=event.expires_at)
        for event, user in result.all()
        if is_typing_visible(event.expires_at, event.user_id, viewer_id, now)
    ]


async def sweep_expired(
    db: AsyncSession, clock: Clock, grace_ms: int,
) -> int:
    """Delete typing rows that expired more than grace_ms ago. Returns row count."""
    cutoff = clock.now_ms() - grace_ms
    result = await db.execute(
        delete(TypingEvent).where(TypingEvent.expires_at <= cutoff),
    )
    await db.commit()
    return result.rowcount or 0


async def run_sweeper(
    session_scope: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    clock: Clock,
    interval_seconds: float,
    grace_ms: int,
) -> None:
    """Background loop for storage hygiene; cancelled by the app lifespan."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_scope() as db:
                removed = await sweep_expired(db, clock, grace_ms)
            if removed:
                logger.info("Swept stale typing events", extra={"count": removed})
        except Exception as e:
            logger.error(f"Typing sweep failed: {e}", exc_info=True)
