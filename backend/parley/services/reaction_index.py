"""Reaction Index — toggle records and per-emoji aggregation.

Invariants:
    - At most one row per (message, user, emoji); toggle is a pure flip
    - Emoji is validated before anything is read or written
    - Aggregates always have one entry per allowed emoji, in fixed order
    - aggregate_for_messages resolves any number of messages in one query
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.errors import ConflictError, ErrorContext, ResourceNotFoundError
from parley.core.reactions import check_reaction_allowed, tally_reactions
from parley.models.message import Message
from parley.models.message_reaction import MessageReaction
from parley.schemas.message import ReactionSummary, ReactionToggleResponse
from parley.services import membership_registry

logger = logging.getLogger(__name__)


async def _get_message_or_404(db: AsyncSession, message_id: UUID) -> Message:
    message = await db.get(Message, message_id)
    if message is None:
        raise ResourceNotFoundError("Message", str(message_id))
    return message


async def aggregate_for_messages(
    db: AsyncSession, message_ids: Iterable[UUID], viewer_id: UUID,
) -> dict[UUID, list[ReactionSummary]]:
    ids = set(message_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(
            MessageReaction.message_id, MessageReaction.emoji,
            MessageReaction.user_id,
        ).where(MessageReaction.message_id.in_(ids)),
    )
    rows_by_message: dict[UUID, list[tuple[str, UUID]]] = {mid: [] for mid in ids}
    for message_id, emoji, user_id in result.all():
        rows_by_message[message_id].append((emoji, user_id))
    return {
        message_id: [
            ReactionSummary(**entry) for entry in tally_reactions(rows, viewer_id)
        ]
        for message_id, rows in rows_by_message.items()
    }


async def aggregate(
    db: AsyncSession, message_id: UUID, viewer_id: UUID,
) -> list[ReactionSummary]:
    """Per-emoji counts and the viewer's own reactions for one message."""
    aggregates = await aggregate_for_messages(db, [message_id], viewer_id)
    return aggregates[message_id]


async def list_reactions(
    db: AsyncSession, message_id: UUID, viewer_id: UUID,
) -> list[ReactionSummary]:
    """Membership-gated read of one message's aggregate."""
    message = await _get_message_or_404(db, message_id)
    await membership_registry.require_membership(
        db, message.conversation_id, viewer_id,
    )
    return await aggregate(db, message_id, viewer_id)


async def toggle_reaction(
    db: AsyncSession, clock: Clock, message_id: UUID, user_id: UUID, emoji: str,
) -> ReactionToggleResponse:
    """Add the reaction if absent, remove it if present."""
    check_reaction_allowed(emoji)
    message = await _get_message_or_404(db, message_id)
    await membership_registry.require_membership(
        db, message.conversation_id, user_id,
    )

    result = await db.execute(
        select(MessageReaction).where(
            MessageReaction.message_id == message_id,
            MessageReaction.user_id == user_id,
            MessageReaction.emoji == emoji,
        ),
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        await db.delete(existing)
        removed = True
    else:
        db.add(MessageReaction(
            message_id=message_id, user_id=user_id, emoji=emoji,
            created_at=clock.now_ms(),
        ))
        removed = False

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Reaction changed concurrently; retry",
            ErrorContext(operation="toggle_reaction", resource_id=str(message_id)),
        )

    logger.info(
        "Reaction toggled",
        extra={"message_id": message_id, "user_id": user_id, "removed": removed},
    )
    return ReactionToggleResponse(
        removed=removed, reactions=await aggregate(db, message_id, user_id),
    )
