"""Presence Rules — typing TTL arithmetic and online detection.

Invariants:
    - A typing event is live iff expires_at > now (strict); equality is stale
    - Stopping typing sets expires_at = now, which is immediately stale
    - A viewer never sees their own typing event
"""

from uuid import UUID

from parley.core.domain_types import EpochMs

DEFAULT_TYPING_TTL_MS = 2_000
DEFAULT_ONLINE_THRESHOLD_MS = 30_000


def typing_expiry(
    now: EpochMs, is_typing: bool, ttl_ms: int = DEFAULT_TYPING_TTL_MS,
) -> EpochMs:
    return EpochMs(now + ttl_ms) if is_typing else now


def is_typing_visible(
    expires_at: int, typist_id: UUID, viewer_id: UUID, now: EpochMs,
) -> bool:
    return typist_id != viewer_id and expires_at > now


def is_online(
    last_seen_at: int | None, now: EpochMs,
    threshold_ms: int = DEFAULT_ONLINE_THRESHOLD_MS,
) -> bool:
    if last_seen_at is None:
        return False
    return now - last_seen_at <= threshold_ms
