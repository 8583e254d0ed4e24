"""Feed Rules — last-message previews and feed ordering.

Invariants:
    - A tombstoned latest message never leaks its (cleared) body
    - Feed rows are ordered by last activity, newest first
"""

from collections.abc import Sequence
from typing import Any

DELETED_MESSAGE_PREVIEW = "This message was deleted"
EMPTY_CONVERSATION_PREVIEW = "No messages yet"


def last_message_preview(
    body: str | None, deleted_at: int | None, has_message: bool,
) -> str:
    if not has_message:
        return EMPTY_CONVERSATION_PREVIEW
    if deleted_at is not None:
        return DELETED_MESSAGE_PREVIEW
    return body or ""


def last_activity_at(
    latest_message_at: int | None, conversation_updated_at: int,
) -> int:
    """Latest message time, falling back to the conversation's own bump."""
    if latest_message_at is None:
        return conversation_updated_at
    return latest_message_at


def sort_feed(rows: Sequence[Any]) -> list[Any]:
    """Order feed rows (anything with .last_message_at) newest first."""
    return sorted(rows, key=lambda row: row.last_message_at, reverse=True)
