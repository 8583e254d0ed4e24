"""Identity Resolver — profile sync, caller resolution, heartbeat and search.

Tests cover:
    - upsert_user creates once, then updates the same row
    - upsert_user refuses to write someone else's profile
    - resolve_current_user distinguishes missing identity from missing profile
    - touch_presence creates a profile from identity claims on first use
    - search_users is case-insensitive, excludes the viewer, escapes wildcards
"""

import pytest
from sqlalchemy import func, select

from parley.core.domain_types import CallerIdentity
from parley.core.errors import ForbiddenError, ProfileMissingError, UnauthorizedError
from parley.models.user import User
from parley.services import identity_resolver

ALICE = CallerIdentity(subject="auth|alice", name="Alice")


# ─── upsert_user ─────────────────────────────────────────────────

async def test_upsert_creates_profile(test_db, clock):
    user_id = await identity_resolver.upsert_user(
        test_db, clock, ALICE, "auth|alice", "Alice", email="a@example.com",
    )
    user = await test_db.get(User, user_id)
    assert user.name == "Alice"
    assert user.email == "a@example.com"
    assert user.created_at == user.updated_at == user.last_seen_at == clock.now


async def test_upsert_twice_updates_same_row(test_db, clock):
    first = await identity_resolver.upsert_user(test_db, clock, ALICE, "auth|alice", "Alice")
    clock.advance(5_000)
    second = await identity_resolver.upsert_user(
        test_db, clock, ALICE, "auth|alice", "Alice B.", image_url="https://img/a.png",
    )
    assert first == second

    count = await test_db.scalar(select(func.count(User.id)))
    assert count == 1
    user = await test_db.get(User, first)
    assert user.name == "Alice B."
    assert user.image_url == "https://img/a.png"
    assert user.created_at == 1_000
    assert user.last_seen_at == 6_000


async def test_upsert_requires_identity(test_db, clock):
    with pytest.raises(UnauthorizedError):
        await identity_resolver.upsert_user(test_db, clock, None, "auth|alice", "Alice")


async def test_upsert_for_another_subject_is_forbidden(test_db, clock):
    with pytest.raises(ForbiddenError):
        await identity_resolver.upsert_user(test_db, clock, ALICE, "auth|bob", "Bob")
    assert await identity_resolver.find_user_by_external_id(test_db, "auth|bob") is None


# ─── resolve_current_user ────────────────────────────────────────

async def test_resolve_without_identity_is_unauthorized(test_db):
    with pytest.raises(UnauthorizedError):
        await identity_resolver.resolve_current_user(test_db, None)


async def test_resolve_without_profile_is_profile_missing(test_db):
    with pytest.raises(ProfileMissingError):
        await identity_resolver.resolve_current_user(test_db, ALICE)


async def test_resolve_returns_linked_profile(test_db, make_user):
    alice = await make_user("Alice")
    user = await identity_resolver.resolve_current_user(test_db, ALICE)
    assert user.id == alice.id


# ─── touch_presence ──────────────────────────────────────────────

async def test_heartbeat_creates_profile_from_claims(test_db, clock):
    identity = CallerIdentity(
        subject="auth|carol", name=" Carol ", picture_url="https://img/c.png",
    )
    seen = await identity_resolver.touch_presence(test_db, clock, identity)
    user = await identity_resolver.find_user_by_external_id(test_db, "auth|carol")
    assert seen == clock.now
    assert user.name == "Carol"
    assert user.image_url == "https://img/c.png"


async def test_heartbeat_without_name_claim_uses_fallback(test_db, clock):
    await identity_resolver.touch_presence(
        test_db, clock, CallerIdentity(subject="auth|anon"),
    )
    user = await identity_resolver.find_user_by_external_id(test_db, "auth|anon")
    assert user.name == identity_resolver.FALLBACK_DISPLAY_NAME


async def test_heartbeat_bumps_last_seen(test_db, clock, make_user):
    alice = await make_user("Alice")
    clock.advance(10_000)
    await identity_resolver.touch_presence(test_db, clock, ALICE)
    await test_db.refresh(alice)
    assert alice.last_seen_at == 11_000
    assert alice.created_at == 1_000


# ─── search_users ────────────────────────────────────────────────

async def test_search_is_case_insensitive_and_excludes_viewer(test_db, make_user):
    alice = await make_user("Alice")
    await make_user("Alicia")
    await make_user("Bob")

    results = await identity_resolver.search_users(test_db, alice.id, "ALI")
    assert [u.name for u in results] == ["Alicia"]


async def test_empty_query_lists_everyone_else_by_name(test_db, make_user):
    viewer = await make_user("Zed")
    await make_user("Carol")
    await make_user("Bob")
    results = await identity_resolver.search_users(test_db, viewer.id, "  ")
    assert [u.name for u in results] == ["Bob", "Carol"]


async def test_search_treats_wildcards_literally(test_db, make_user):
    viewer = await make_user("Viewer")
    await make_user("100% Bob")
    await make_user("Bobby")
    results = await identity_resolver.search_users(test_db, viewer.id, "%")
    assert [u.name for u in results] == ["100% Bob"]


async def test_search_honours_limit(test_db, make_user):
    viewer = await make_user("Viewer")
    for name in ["Ann", "Ben", "Cid"]:
        await make_user(name)
    results = await identity_resolver.search_users(test_db, viewer.id, limit=2)
    assert len(results) == 2
