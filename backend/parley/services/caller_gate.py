"""Caller Gate — applies an operation's AccessPolicy to the resolved caller.

Invariants:
    - Identity/profile failures are decided only by core.access_policy
    - ForbiddenError comes only from the membership gate or an ownership check;
      this module merely decides whether to re-raise or degrade it
    - A degraded read treats "not found" like "forbidden", so a guessed id
      cannot be probed for existence
    - Degradations are logged at DEBUG, never swallowed silently
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from parley.core.access_policy import Operation, Outcome, policy_for
from parley.core.domain_types import CallerIdentity
from parley.core.errors import (
    ForbiddenError, ProfileMissingError, ResourceNotFoundError, UnauthorizedError,
)
from parley.models.user import User
from parley.services import identity_resolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require_identity(
    identity: CallerIdentity | None, operation: Operation,
) -> CallerIdentity | None:
    """Identity-only check for operations that do not need an existing profile."""
    if identity is not None:
        return identity
    if policy_for(operation).missing_identity is Outcome.RAISE:
        raise UnauthorizedError()
    logger.debug("No identity, degrading", extra={"operation": operation.value})
    return None


async def resolve_caller(
    db: AsyncSession, identity: CallerIdentity | None, operation: Operation,
) -> User | None:
    """Return the caller's profile, raise, or return None per the policy table."""
    policy = policy_for(operation)
    try:
        return await identity_resolver.resolve_current_user(db, identity)
    except UnauthorizedError:
        if policy.missing_identity is Outcome.RAISE:
            raise
        logger.debug("No identity, degrading", extra={"operation": operation.value})
    except ProfileMissingError:
        if policy.missing_profile is Outcome.RAISE:
            raise
        logger.debug("No profile, degrading", extra={"operation": operation.value})
    return None


async def run_as_caller(
    db: AsyncSession,
    identity: CallerIdentity | None,
    operation: Operation,
    action: Callable[[User], Awaitable[T]],
    fallback: Callable[[], T],
) -> T:
    """Resolve the caller, run action(caller), degrade to fallback() where allowed."""
    caller = await resolve_caller(db, identity, operation)
    if caller is None:
        return fallback()
    try:
        return await action(caller)
    except (ForbiddenError, ResourceNotFoundError) as e:
        if policy_for(operation).forbidden is Outcome.RAISE:
            raise
        logger.debug(
            f"{e.code}, degrading",
            extra={"operation": operation.value, "user_id": caller.id},
        )
        return fallback()
