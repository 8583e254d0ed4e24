"""Conversation Feed Assembler — read-only composition of previews and feed rows.

Invariants:
    - Never writes; never commits
    - unread_count = messages with sender != viewer and created_at > viewer's
      last_read_at, computed by the database from stored timestamps
    - list_mine runs a fixed set of batched queries (memberships, participants,
      latest messages, unread counts) whatever the number of conversations
"""

import logging
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.conversation_rules import conversation_title
from parley.core.domain_types import ConversationType, EpochMs
from parley.core.feed_rules import last_activity_at, last_message_preview, sort_feed
from parley.core.presence_rules import DEFAULT_ONLINE_THRESHOLD_MS, is_online
from parley.models.conversation import Conversation
from parley.models.conversation_member import ConversationMember
from parley.models.message import Message
from parley.models.user import User
from parley.schemas.conversation import (
    ConversationPreview, ConversationSummary, Counterpart, Participant,
)
from parley.services import membership_registry

logger = logging.getLogger(__name__)


def _participant(user: User, now: EpochMs, threshold_ms: int) -> Participant:
    return Participant(
        id=user.id, name=user.name, image_url=user.image_url,
        last_seen_at=user.last_seen_at,
        is_online=is_online(user.last_seen_at, now, threshold_ms),
    )


def _compose_preview(
    conversation: Conversation,
    profiles: list[User],
    viewer_id: UUID,
    now: EpochMs,
    threshold_ms: int,
) -> dict:
    participants = [_participant(user, now, threshold_ms) for user in profiles]
    other = next((p for p in participants if p.id != viewer_id), None)
    is_dm = conversation.type == ConversationType.DM.value

    counterpart = None
    if is_dm:
        counterpart = (
            Counterpart(**other.model_dump()) if other is not None else Counterpart()
        )
    return {
        "id": conversation.id,
        "type": conversation.type,
        "title": conversation_title(
            conversation.type, conversation.name,
            other.name if other is not None else None,
        ),
        "member_count": len(participants),
        "counterpart": counterpart,
        "participants": participants,
    }


async def preview_one(
    db: AsyncSession,
    clock: Clock,
    conversation_id: UUID,
    viewer_id: UUID,
    online_threshold_ms: int = DEFAULT_ONLINE_THRESHOLD_MS,
) -> ConversationPreview | None:
    """Header view of one conversation for a member; None if it no longer exists."""
    await membership_registry.require_membership(db, conversation_id, viewer_id)
    conversation = await db.get(Conversation, conversation_id)
    if conversation is None:
        return None

    participants = await membership_registry.load_participants(db, [conversation_id])
    return ConversationPreview(**_compose_preview(
        conversation, participants[conversation_id], viewer_id,
        clock.now_ms(), online_threshold_ms,
    ))


async def _latest_messages(
    db: AsyncSession, conversation_ids: list[UUID],
) -> dict[UUID, tuple[str, int, int | None]]:
    """(body, created_at, deleted_at) of the newest message per conversation."""
    ranked = (
        select(
            Message.conversation_id,
            Message.body,
            Message.created_at,
            Message.deleted_at,
            func.row_number().over(
                partition_by=Message.conversation_id,
                order_by=(Message.created_at.desc(), Message.seq.desc()),
            ).label("recency"),
        )
        .where(Message.conversation_id.in_(conversation_ids))
        .subquery()
    )
    result = await db.execute(
        select(
            ranked.c.conversation_id, ranked.c.body,
            ranked.c.created_at, ranked.c.deleted_at,
        ).where(ranked.c.recency == 1),
    )
    return {
        conversation_id: (body, created_at, deleted_at)
        for conversation_id, body, created_at, deleted_at in result.all()
    }


async def _unread_counts(db: AsyncSession, viewer_id: UUID) -> dict[UUID, int]:
    result = await db.execute(
        select(Message.conversation_id, func.count(Message.id))
        .join(
            ConversationMember,
            and_(
                ConversationMember.conversation_id == Message.conversation_id,
                ConversationMember.user_id == viewer_id,
            ),
        )
        .where(
            Message.sender_id != viewer_id,
            Message.created_at > ConversationMember.last_read_at,
        )
        .group_by(Message.conversation_id),
    )
    return {conversation_id: count for conversation_id, count in result.all()}


async def list_mine(
    db: AsyncSession,
    clock: Clock,
    viewer_id: UUID,
    online_threshold_ms: int = DEFAULT_ONLINE_THRESHOLD_MS,
) -> list[ConversationSummary]:
    """Every conversation the viewer belongs to, most recently active first."""
    result = await db.execute(
        select(Conversation)
        .join(
            ConversationMember,
            ConversationMember.conversation_id == Conversation.id,
        )
        .where(ConversationMember.user_id == viewer_id),
    )
    conversations = list(result.scalars())
    if not conversations:
        return []
    conversation_ids = [conversation.id for conversation in conversations]

    participants = await membership_registry.load_participants(db, conversation_ids)
    latest = await _latest_messages(db, conversation_ids)
    unread = await _unread_counts(db, viewer_id)

    now = clock.now_ms()
    rows = []
    for conversation in conversations:
        body, created_at, deleted_at = latest.get(
            conversation.id, (None, None, None),
        )
        rows.append(ConversationSummary(
            **_compose_preview(
                conversation, participants[conversation.id], viewer_id,
                now, online_threshold_ms,
            ),
            last_message_preview=last_message_preview(
                body, deleted_at, has_message=created_at is not None,
            ),
            last_message_at=last_activity_at(created_at, conversation.updated_at),
            unread_count=unread.get(conversation.id, 0),
        ))
    return sort_feed(rows)
