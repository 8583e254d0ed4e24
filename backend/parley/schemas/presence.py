"""Typing Presence Schemas."""

from uuid import UUID

from parley.schemas.base import CamelModel


class TypingUpdate(CamelModel):
    is_typing: bool


class TypingEventResponse(CamelModel):
    event_id: UUID | None


class TypingUser(CamelModel):
    user_id: UUID
    name: str
    expires_at: int
