"""User Routes — profile sync, current profile, presence heartbeat, search."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from parley.api.dependencies import get_clock
from parley.config import Settings, get_settings
from parley.core.access_policy import Operation
from parley.core.clock import Clock
from parley.core.domain_types import CallerIdentity
from parley.core.presence_rules import is_online
from parley.infrastructure.auth import get_identity
from parley.infrastructure.database import get_db
from parley.models.user import User
from parley.schemas.user import (
    PresenceResponse, UserIdResponse, UserProfile, UserPublic, UserSync,
)
from parley.services import identity_resolver
from parley.services.caller_gate import require_identity, resolve_caller, run_as_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/sync", response_model=UserIdResponse)
async def sync_user(
    body: UserSync,
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Create or update the caller's own profile."""
    user_id = await identity_resolver.upsert_user(
        db, clock, identity, body.external_id, body.name,
        image_url=body.image_url, email=body.email,
    )
    return UserIdResponse(user_id=user_id)


@router.get("/me", response_model=UserProfile | None)
async def get_current_user_profile(
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    caller = await resolve_caller(db, identity, Operation.GET_CURRENT_PROFILE)
    if caller is None:
        return None
    return UserProfile.model_validate(caller)


@router.post("/me/presence", response_model=PresenceResponse)
async def touch_presence(
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Presence heartbeat; creates the profile from token claims on first use."""
    verified = require_identity(identity, Operation.TOUCH_PRESENCE)
    if verified is None:
        return PresenceResponse(last_seen_at=None)
    last_seen_at = await identity_resolver.touch_presence(db, clock, verified)
    return PresenceResponse(last_seen_at=last_seen_at)


@router.get("/search", response_model=list[UserPublic])
async def search_users(
    q: str | None = Query(None, max_length=255),
    identity: CallerIdentity | None = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """Other users whose name contains q (case-insensitive)."""
    async def action(caller: User) -> list[UserPublic]:
        users = await identity_resolver.search_users(
            db, caller.id, q, limit=settings.user_search_limit,
        )
        now = clock.now_ms()
        return [
            UserPublic(
                id=user.id, name=user.name, image_url=user.image_url,
                last_seen_at=user.last_seen_at,
                is_online=is_online(
                    user.last_seen_at, now, settings.online_threshold_ms,
                ),
            )
            for user in users
        ]

    return await run_as_caller(db, identity, Operation.SEARCH_USERS, action, list)
