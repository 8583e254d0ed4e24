"""Reaction Rules — allowed emoji set and per-message aggregation.

Invariants:
    - ALLOWED_REACTIONS order is the display order of every aggregate
    - tally_reactions always returns one entry per allowed emoji (constant shape)
    - Rows with an emoji outside the set are ignored, never reported
"""

from collections.abc import Iterable
from uuid import UUID

from parley.core.errors import DomainValidationError

ALLOWED_REACTIONS: tuple[str, ...] = ("👍", "❤️", "😂", "😮", "😢")


def check_reaction_allowed(emoji: str) -> None:
    if emoji not in ALLOWED_REACTIONS:
        raise DomainValidationError("Unsupported reaction", "emoji")


def tally_reactions(
    rows: Iterable[tuple[str, UUID]], viewer_id: UUID,
) -> list[dict]:
    """Fold (emoji, user_id) rows of one message into the fixed-shape aggregate."""
    counts = {emoji: 0 for emoji in ALLOWED_REACTIONS}
    mine: set[str] = set()
    for emoji, user_id in rows:
        if emoji not in counts:
            continue
        counts[emoji] += 1
        if user_id == viewer_id:
            mine.add(emoji)
    return [
        {"emoji": emoji, "count": counts[emoji], "reacted_by_me": emoji in mine}
        for emoji in ALLOWED_REACTIONS
    ]
