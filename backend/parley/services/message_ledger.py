"""Message Ledger — append-only message storage with soft delete.

Invariants:
    - send and soft_delete bump conversation.updated_at in the same transaction
    - Each send claims the conversation's next seq in one atomic UPDATE, so
      history order is send order even within a single millisecond
    - Soft delete happens at most once; repeats return the id and write nothing
    - list_messages issues a constant number of queries regardless of fan-out:
      messages, distinct senders, reactions
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.conversation_rules import normalize_message_body
from parley.core.errors import ErrorContext, ForbiddenError, ResourceNotFoundError
from parley.models.conversation import Conversation
from parley.models.message import Message
from parley.schemas.message import MessageView
from parley.services import identity_resolver, membership_registry, reaction_index

logger = logging.getLogger(__name__)

UNKNOWN_SENDER_NAME = "Unknown user"


async def _bump_conversation(
    db: AsyncSession, conversation_id: UUID, at: int,
) -> None:
    conversation = await db.get(Conversation, conversation_id)
    if conversation is None:
        raise ResourceNotFoundError("Conversation", str(conversation_id))
    conversation.updated_at = at


async def send_message(
    db: AsyncSession, clock: Clock, conversation_id: UUID, sender_id: UUID,
    body: str,
) -> UUID:
    """Append a message from a member and bump the conversation."""
    await membership_registry.require_membership(db, conversation_id, sender_id)
    cleaned = normalize_message_body(body)

    now = clock.now_ms()
    seq = await db.scalar(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(
            last_message_seq=Conversation.last_message_seq + 1, updated_at=now,
        )
        .returning(Conversation.last_message_seq),
    )
    if seq is None:
        raise ResourceNotFoundError("Conversation", str(conversation_id))
    message = Message(
        conversation_id=conversation_id, sender_id=sender_id,
        body=cleaned, created_at=now, seq=seq,
    )
    db.add(message)
    await db.flush()
    message_id = message.id
    await db.commit()

    logger.info(
        "Message sent",
        extra={
            "message_id": message_id, "conversation_id": conversation_id,
            "user_id": sender_id,
        },
    )
    return message_id


async def soft_delete_message(
    db: AsyncSession, clock: Clock, message_id: UUID, requester_id: UUID,
) -> UUID:
    """Tombstone the requester's own message: clear body, stamp deleted_at/by."""
    message = await db.get(Message, message_id)
    if message is None:
        raise ResourceNotFoundError(
            "Message", str(message_id), ErrorContext(operation="delete_message"),
        )
    if message.sender_id != requester_id:
        raise ForbiddenError(
            "you can delete only your own messages",
            ErrorContext(operation="delete_message", resource_id=str(message_id)),
        )
    if message.is_deleted:
        return message_id

    await membership_registry.require_membership(
        db, message.conversation_id, requester_id,
    )

    now = clock.now_ms()
    message.body = ""
    message.deleted_at = now
    message.deleted_by = requester_id
    await _bump_conversation(db, message.conversation_id, now)
    await db.commit()

    logger.info(
        "Message deleted",
        extra={"message_id": message_id, "user_id": requester_id},
    )
    return message_id


async def list_messages(
    db: AsyncSession, conversation_id: UUID, requester_id: UUID,
) -> list[MessageView]:
    """Full history, oldest first, enriched for the requesting member."""
    await membership_registry.require_membership(db, conversation_id, requester_id)

    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.seq),
    )
    messages = list(result.scalars())
    if not messages:
        return []

    senders = await identity_resolver.load_users(
        db, {message.sender_id for message in messages},
    )
    reactions = await reaction_index.aggregate_for_messages(
        db, [message.id for message in messages], requester_id,
    )

    return [
        MessageView(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            sender_name=(
                senders[message.sender_id].name
                if message.sender_id in senders else UNKNOWN_SENDER_NAME
            ),
            body=message.body,
            created_at=message.created_at,
            is_mine=message.sender_id == requester_id,
            is_deleted=message.is_deleted,
            reactions=reactions[message.id],
        )
        for message in messages
    ]
