"""Message Routes — soft delete and reactions on a single message."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from parley.api.dependencies import get_clock
from parley.core.access_policy import Operation
from parley.core.clock import Clock
from parley.core.domain_types import CallerIdentity
from parley.infrastructure.auth import get_identity
from parley.infrastructure.database import get_db
from parley.models.user import User
from parley.schemas.message import (
    MessageIdResponse, ReactionSummary, ReactionToggle, ReactionToggleResponse,
)
from parley.services import message_ledger, reaction_index
from parley.services.caller_gate import resolve_caller, run_as_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.delete("/{message_id}", response_model=MessageIdResponse)
async def delete_message(
    message_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Soft-delete the caller's own message. Repeating the call is a no-op."""
    caller = await resolve_caller(db, identity, Operation.DELETE_MESSAGE)
    deleted_id = await message_ledger.soft_delete_message(
        db, clock, message_id, caller.id,
    )
    return MessageIdResponse(message_id=deleted_id)


@router.post("/{message_id}/reactions", response_model=ReactionToggleResponse)
async def toggle_reaction(
    message_id: UUID,
    body: ReactionToggle,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    caller = await resolve_caller(db, identity, Operation.TOGGLE_REACTION)
    return await reaction_index.toggle_reaction(
        db, clock, message_id, caller.id, body.emoji,
    )


@router.get("/{message_id}/reactions", response_model=list[ReactionSummary])
async def list_reactions(
    message_id: UUID,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    async def action(caller: User) -> list[ReactionSummary]:
        return await reaction_index.list_reactions(db, message_id, caller.id)

    return await run_as_caller(
        db, identity, Operation.LIST_REACTIONS, action, list,
    )
