"""Identity Resolver — maps verified identities to user records and owns profile writes.

Invariants:
    - upsert_user only ever writes the caller's own profile (subject must match)
    - Every sync/heartbeat refreshes last_seen_at and updated_at to the same instant
    - load_users resolves any number of ids in one query
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.clock import Clock
from parley.core.domain_types import CallerIdentity
from parley.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, ProfileMissingError,
    UnauthorizedError,
)
from parley.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
FALLBACK_DISPLAY_NAME = "User"


async def find_user_by_external_id(
    db: AsyncSession, external_id: str,
) -> User | None:
    result = await db.execute(
        select(User).where(User.external_id == external_id),
    )
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: UUID) -> User | None:
    return await db.get(User, user_id)


async def load_users(
    db: AsyncSession, user_ids: Iterable[UUID],
) -> dict[UUID, User]:
    """Batched lookup of distinct user ids; missing ids are simply absent."""
    ids = set(user_ids)
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {user.id: user for user in result.scalars()}


async def resolve_current_user(
    db: AsyncSession, identity: CallerIdentity | None,
) -> User:
    """Resolve the caller's profile or raise Unauthorized / ProfileMissing."""
    if identity is None:
        raise UnauthorizedError()
    user = await find_user_by_external_id(db, identity.subject)
    if user is None:
        raise ProfileMissingError(ErrorContext(resource_id=identity.subject))
    return user


async def upsert_user(
    db: AsyncSession,
    clock: Clock,
    identity: CallerIdentity | None,
    external_id: str,
    name: str,
    image_url: str | None = None,
    email: str | None = None,
) -> UUID:
    """Create or update the caller's profile from client-supplied fields."""
    if identity is None:
        raise UnauthorizedError(ErrorContext(operation="upsert_user"))
    if external_id != identity.subject:
        raise ForbiddenError(
            "profile sync must target your own identity",
            ErrorContext(operation="upsert_user", resource_id=external_id),
        )

    now = clock.now_ms()
    user = await find_user_by_external_id(db, external_id)
    if user is None:
        user = User(
            external_id=external_id, name=name, image_url=image_url,
            email=email, created_at=now, updated_at=now, last_seen_at=now,
        )
        db.add(user)
    else:
        user.name = name
        user.image_url = image_url
        user.email = email
        user.updated_at = now
        user.last_seen_at = now

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Profile was created concurrently; retry the sync",
            ErrorContext(operation="upsert_user", resource_id=external_id),
        )
    logger.info("User synced", extra={"user_id": user.id, "operation": "upsert_user"})
    return user.id


async def touch_presence(
    db: AsyncSession, clock: Clock, identity: CallerIdentity,
) -> int:
    """Heartbeat: create the profile from identity claims if needed, bump last_seen_at."""
    now = clock.now_ms()
    user = await find_user_by_external_id(db, identity.subject)
    if user is None:
        user = User(
            external_id=identity.subject,
            name=(identity.name or "").strip() or FALLBACK_DISPLAY_NAME,
            image_url=identity.picture_url,
            email=identity.email,
            created_at=now,
        )
        db.add(user)
        logger.info(
            "Profile created from heartbeat",
            extra={"operation": "touch_presence"},
        )
    user.last_seen_at = now
    user.updated_at = now
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Profile was created concurrently; retry the heartbeat",
            ErrorContext(operation="touch_presence"),
        )
    return now


async def search_users(
    db: AsyncSession,
    viewer_id: UUID,
    query: str | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[User]:
    """Case-insensitive substring match on name, excluding the viewer."""
    stmt = select(User).where(User.id != viewer_id)
    needle = (query or "").strip().lower()
    if needle:
        stmt = stmt.where(func.lower(User.name).contains(needle, autoescape=True))
    stmt = stmt.order_by(User.name, User.id).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars())
