"""Membership Registry — the membership gate, read cursors and participants."""

import pytest

from parley.core.errors import ForbiddenError
from parley.services import conversation_directory, membership_registry


@pytest.fixture
async def dm(test_db, clock, make_user):
    alice, bob, eve = (
        await make_user("Alice"), await make_user("Bob"), await make_user("Eve"),
    )
    cid = await conversation_directory.get_or_create_dm(test_db, clock, alice, bob.id)
    return cid, alice, bob, eve


async def test_members_pass_the_gate(test_db, dm):
    cid, alice, bob, _ = dm
    membership = await membership_registry.require_membership(test_db, cid, bob.id)
    assert membership.user_id == bob.id
    assert membership.joined_at == membership.last_read_at


async def test_outsiders_are_forbidden(test_db, dm):
    cid, _, _, eve = dm
    with pytest.raises(ForbiddenError):
        await membership_registry.require_membership(test_db, cid, eve.id)


async def test_mark_read_advances_cursor_to_now(test_db, clock, dm):
    cid, alice, _, _ = dm
    clock.advance(3_000)
    receipt = await membership_registry.mark_read(test_db, clock, cid, alice.id)
    assert receipt.last_read_at == clock.now


async def test_mark_read_never_moves_backwards(test_db, clock, dm):
    cid, alice, _, _ = dm
    clock.advance(3_000)
    await membership_registry.mark_read(test_db, clock, cid, alice.id)
    clock.now -= 2_000
    receipt = await membership_registry.mark_read(test_db, clock, cid, alice.id)
    assert receipt.last_read_at == 4_000


async def test_mark_read_for_outsider_is_a_null_receipt(test_db, clock, dm):
    cid, _, _, eve = dm
    receipt = await membership_registry.mark_read(test_db, clock, cid, eve.id)
    assert receipt.conversation_id == cid
    assert receipt.last_read_at is None


async def test_load_participants_batches_conversations(test_db, clock, dm):
    cid, alice, bob, eve = dm
    other = await conversation_directory.get_or_create_dm(test_db, clock, eve, bob.id)

    participants = await membership_registry.load_participants(test_db, [cid, other])
    assert {u.id for u in participants[cid]} == {alice.id, bob.id}
    assert {u.id for u in participants[other]} == {eve.id, bob.id}
    assert await membership_registry.load_participants(test_db, []) == {}
