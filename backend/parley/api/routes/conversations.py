"""Conversation Routes — DM/group creation, feed, previews, read cursor,
messages and typing presence scoped to one conversation.

Invariants:
    - Every handler resolves the caller through caller_gate with its Operation
    - Conversation-scoped services enforce membership themselves
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from parley.api.dependencies import get_clock
from parley.config import Settings, get_settings
from parley.core.access_policy import Operation
from parley.core.clock import Clock
from parley.core.domain_types import CallerIdentity
from parley.infrastructure.auth import get_identity
from parley.infrastructure.database import get_db
from parley.models.user import User
from parley.schemas.conversation import (
    ConversationIdResponse, ConversationPreview, ConversationSummary,
    DmCreate, GroupCreate, ReadReceipt,
)
from parley.schemas.message import MessageCreate, MessageIdResponse, MessageView
from parley.schemas.presence import TypingEventResponse, TypingUpdate, TypingUser
from parley.services import (
    conversation_directory, feed_assembler, membership_registry,
    message_ledger, typing_presence,
)
from parley.services.caller_gate import resolve_caller, run_as_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.post(
    "/dm", response_model=ConversationIdResponse,
    status_code=status.HTTP_200_OK,
)
async def get_or_create_dm(
    body: DmCreate,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Idempotent: both sides of a pair always get the same conversation."""
    caller = await resolve_caller(db, identity, Operation.GET_OR_CREATE_DM)
    conversation_id = await conversation_directory.get_or_create_dm(
        db, clock, caller, body.other_user_id,
    )
    return ConversationIdResponse(conversation_id=conversation_id)


@router.post(
    "/groups", response_model=ConversationIdResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_group(
    body: GroupCreate,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    caller = await resolve_caller(db, identity, Operation.CREATE_GROUP)
    conversation_id = await conversation_directory.create_group(
        db, clock, caller, body.name, body.member_ids,
    )
    return ConversationIdResponse(conversation_id=conversation_id)


@router.get("", response_model=list[ConversationSummary])
async def list_my_conversations(
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """The caller's feed, most recently active first."""
    async def action(caller: User) -> list[ConversationSummary]:
        return await feed_assembler.list_mine(
            db, clock, caller.id, settings.online_threshold_ms,
        )

    return await run_as_caller(db, identity, Operation.LIST_MINE, action, list)


@router.get("/{conversation_id}", response_model=ConversationPreview | None)
async def get_conversation_preview(
    conversation_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    async def action(caller: User) -> ConversationPreview | None:
        return await feed_assembler.preview_one(
            db, clock, conversation_id, caller.id, settings.online_threshold_ms,
        )

    return await run_as_caller(
        db, identity, Operation.GET_PREVIEW, action, lambda: None,
    )


@router.post("/{conversation_id}/read", response_model=ReadReceipt)
async def mark_conversation_read(
    conversation_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    async def action(caller: User) -> ReadReceipt:
        return await membership_registry.mark_read(
            db, clock, conversation_id, caller.id,
        )

    return await run_as_caller(
        db, identity, Operation.MARK_READ, action,
        lambda: ReadReceipt(conversation_id=conversation_id, last_read_at=None),
    )


@router.post(
    "/{conversation_id}/messages", response_model=MessageIdResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: UUID,
    body: MessageCreate,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    caller = await resolve_caller(db, identity, Operation.SEND_MESSAGE)
    message_id = await message_ledger.send_message(
        db, clock, conversation_id, caller.id, body.body,
    )
    return MessageIdResponse(message_id=message_id)


@router.get("/{conversation_id}/messages", response_model=list[MessageView])
async def list_messages(
    conversation_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    async def action(caller: User) -> list[MessageView]:
        return await message_ledger.list_messages(db, conversation_id, caller.id)

    return await run_as_caller(
        db, identity, Operation.LIST_MESSAGES, action, list,
    )


@router.put("/{conversation_id}/typing", response_model=TypingEventResponse)
async def set_typing(
    conversation_id: UUID,
    body: TypingUpdate,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    async def action(caller: User) -> TypingEventResponse:
        event_id = await typing_presence.set_typing(
            db, clock, conversation_id, caller.id, body.is_typing,
            ttl_ms=settings.typing_ttl_ms,
        )
        return TypingEventResponse(event_id=event_id)

    return await run_as_caller(
        db, identity, Operation.SET_TYPING, action,
        lambda: TypingEventResponse(event_id=None),
    )


@router.get("/{conversation_id}/typing", response_model=list[TypingUser])
async def list_typing_users(
    conversation_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    async def action(caller: User) -> list[TypingUser]:
        return await typing_presence.list_active(db, clock, conversation_id, caller.id)

    return await run_as_caller(db, identity, Operation.LIST_TYPING, action, list)
