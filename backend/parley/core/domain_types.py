"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - EpochMs is an integer count of milliseconds since the Unix epoch
    - All valid states encoded as Enums — no raw string matching
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Value Types ─────────────────────────────────────────────────

EpochMs = NewType("EpochMs", int)


# ─── Enums ───────────────────────────────────────────────────────

class ConversationType(str, Enum):
    """Conversation kind — maps to DB `type` column, immutable after creation."""
    DM = "dm"
    GROUP = "group"


@dataclass(frozen=True)
class CallerIdentity:
    """Verified identity handed over by the external auth provider."""
    subject: str
    name: str | None = None
    email: str | None = None
    picture_url: str | None = None
