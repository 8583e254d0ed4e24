"""Message & Reaction Schemas."""

from uuid import UUID

from pydantic import Field

from parley.schemas.base import CamelModel


class MessageCreate(CamelModel):
    body: str = Field(max_length=10_000)


class MessageIdResponse(CamelModel):
    message_id: UUID


class ReactionSummary(CamelModel):
    emoji: str
    count: int
    reacted_by_me: bool


class ReactionToggle(CamelModel):
    emoji: str = Field(max_length=16)


class ReactionToggleResponse(CamelModel):
    removed: bool
    reactions: list[ReactionSummary]


class MessageView(CamelModel):
    """A ledger entry as seen by one viewer."""
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    sender_name: str
    body: str
    created_at: int
    is_mine: bool
    is_deleted: bool
    reactions: list[ReactionSummary]
