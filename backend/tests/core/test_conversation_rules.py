"""Conversation Rules — DM keys, group validation, message bodies, titles.

Tests cover:
    - build_dm_key is symmetric and uses lexicographic order with "|"
    - normalize_group_name trims and enforces the minimum length
    - select_group_members dedupes, drops the creator, enforces >= 2 others
    - normalize_message_body rejects whitespace-only bodies
    - conversation_title falls back when names are missing
"""

from uuid import UUID, uuid4

import pytest

from parley.core.conversation_rules import (
    DM_FALLBACK_TITLE, GROUP_FALLBACK_TITLE,
    build_dm_key, check_not_self_dm, conversation_title,
    normalize_group_name, normalize_message_body, select_group_members,
)
from parley.core.errors import DomainValidationError

A = UUID("00000000-0000-0000-0000-00000000000a")
B = UUID("00000000-0000-0000-0000-00000000000b")


# ─── build_dm_key ────────────────────────────────────────────────

def test_dm_key_is_order_independent():
    assert build_dm_key(A, B) == build_dm_key(B, A)


def test_dm_key_sorts_lexicographically_and_joins_with_pipe():
    assert build_dm_key(B, A) == f"{A}|{B}"


def test_dm_key_accepts_strings_and_uuids_alike():
    assert build_dm_key(str(A), B) == build_dm_key(A, str(B))


def test_dm_key_differs_per_pair():
    c = uuid4()
    assert build_dm_key(A, B) != build_dm_key(A, c)


def test_self_dm_is_rejected():
    with pytest.raises(DomainValidationError) as exc:
        check_not_self_dm(A, A)
    assert exc.value.field == "otherUserId"


def test_dm_with_someone_else_passes():
    check_not_self_dm(A, B)


# ─── groups ──────────────────────────────────────────────────────

def test_group_name_is_trimmed():
    assert normalize_group_name("  Book club  ") == "Book club"


@pytest.mark.parametrize("name", ["", " ", "x", "  y  "])
def test_group_name_shorter_than_two_is_rejected(name):
    with pytest.raises(DomainValidationError):
        normalize_group_name(name)


def test_group_name_of_exactly_two_chars_passes():
    assert normalize_group_name(" ab ") == "ab"


def test_group_members_drop_creator_and_duplicates():
    c = uuid4()
    assert select_group_members(A, [B, A, c, B]) == [B, c]


def test_group_needs_two_others_after_cleanup():
    with pytest.raises(DomainValidationError) as exc:
        select_group_members(A, [B, B, A])
    assert exc.value.field == "memberIds"


def test_group_with_no_members_is_rejected():
    with pytest.raises(DomainValidationError):
        select_group_members(A, [])


# ─── messages & titles ───────────────────────────────────────────

def test_message_body_is_trimmed():
    assert normalize_message_body("  hi \n") == "hi"


def test_whitespace_body_is_rejected():
    with pytest.raises(DomainValidationError) as exc:
        normalize_message_body(" \t\n ")
    assert exc.value.http_status == 400


def test_dm_title_is_counterpart_name():
    assert conversation_title("dm", None, "Bob") == "Bob"


def test_dm_title_falls_back_without_counterpart():
    assert conversation_title("dm", None, None) == DM_FALLBACK_TITLE


def test_group_title_is_stored_name():
    assert conversation_title("group", "Book club", "Bob") == "Book club"


def test_group_title_falls_back_without_name():
    assert conversation_title("group", None, None) == GROUP_FALLBACK_TITLE
