"""Conversation Rules — pure validation and derivation for DMs, groups and messages.

Invariants:
    - build_dm_key is symmetric: build_dm_key(a, b) == build_dm_key(b, a)
    - Keys sort the string forms lexicographically and join with DM_KEY_SEPARATOR;
      changing either rule orphans every stored DM
    - Every check raises DomainValidationError before the caller writes anything
"""

from collections.abc import Iterable
from uuid import UUID

from parley.core.errors import DomainValidationError

DM_KEY_SEPARATOR = "|"
MIN_GROUP_NAME_LENGTH = 2
MIN_GROUP_OTHER_MEMBERS = 2

DM_FALLBACK_TITLE = "Direct Message"
GROUP_FALLBACK_TITLE = "Group"


def build_dm_key(a: UUID | str, b: UUID | str) -> str:
    """Canonical, order-independent key for the DM between two users."""
    return DM_KEY_SEPARATOR.join(sorted((str(a), str(b))))


def check_not_self_dm(current_user_id: UUID, other_user_id: UUID) -> None:
    if current_user_id == other_user_id:
        raise DomainValidationError(
            "Cannot start a conversation with yourself", "otherUserId",
        )


def normalize_group_name(name: str) -> str:
    """Trim and validate a group display name."""
    cleaned = name.strip()
    if len(cleaned) < MIN_GROUP_NAME_LENGTH:
        raise DomainValidationError(
            f"Group name must be at least {MIN_GROUP_NAME_LENGTH} characters",
            "name",
        )
    return cleaned


def select_group_members(
    creator_id: UUID, member_ids: Iterable[UUID],
) -> list[UUID]:
    """Deduplicate (first occurrence wins), drop the creator, enforce the minimum."""
    others = [
        member_id for member_id in dict.fromkeys(member_ids)
        if member_id != creator_id
    ]
    if len(others) < MIN_GROUP_OTHER_MEMBERS:
        raise DomainValidationError(
            f"Select at least {MIN_GROUP_OTHER_MEMBERS} other users to create a group",
            "memberIds",
        )
    return others


def normalize_message_body(body: str) -> str:
    cleaned = body.strip()
    if not cleaned:
        raise DomainValidationError("Message body is required", "body")
    return cleaned


def conversation_title(
    conversation_type: str, group_name: str | None, counterpart_name: str | None,
) -> str:
    """DMs are titled after the other participant, groups after their stored name."""
    if conversation_type == "dm":
        return counterpart_name or DM_FALLBACK_TITLE
    return group_name or GROUP_FALLBACK_TITLE
