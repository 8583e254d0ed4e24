"""Conversation Schemas — creation payloads, previews and feed rows."""

from typing import Literal
from uuid import UUID

from pydantic import Field

from parley.schemas.base import CamelModel


class DmCreate(CamelModel):
    other_user_id: UUID


class GroupCreate(CamelModel):
    # trimmed/length-checked by core.conversation_rules, not here
    name: str = Field(max_length=255)
    member_ids: list[UUID] = Field(max_length=256)


class ConversationIdResponse(CamelModel):
    conversation_id: UUID


class Participant(CamelModel):
    id: UUID
    name: str
    image_url: str | None = None
    last_seen_at: int
    is_online: bool


class Counterpart(CamelModel):
    """The other side of a DM; fields are null if their profile is gone."""
    id: UUID | None = None
    name: str | None = None
    image_url: str | None = None
    last_seen_at: int | None = None
    is_online: bool = False


class ConversationPreview(CamelModel):
    id: UUID
    type: Literal["dm", "group"]
    title: str
    member_count: int
    counterpart: Counterpart | None = None
    participants: list[Participant]


class ConversationSummary(ConversationPreview):
    """Feed row: preview plus last-message and unread accounting."""
    last_message_preview: str
    last_message_at: int
    unread_count: int


class ReadReceipt(CamelModel):
    conversation_id: UUID
    last_read_at: int | None
