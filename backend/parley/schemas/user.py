"""User Schemas — profile sync payload and user-facing profile shapes.

Invariants:
    - UserSync.name is stripped and non-empty
    - UserPublic never exposes external_id or email (search results)
"""

from uuid import UUID

from pydantic import Field, field_validator

from parley.schemas.base import CamelModel


class UserSync(CamelModel):
    """Profile sync from the client after sign-in."""
    external_id: str = Field(min_length=1, max_length=255)
    name: str = Field(max_length=255)
    image_url: str | None = Field(None, max_length=2048)
    email: str | None = Field(None, max_length=320)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class UserIdResponse(CamelModel):
    user_id: UUID


class UserProfile(CamelModel):
    """The caller's own profile."""
    id: UUID
    external_id: str
    name: str
    image_url: str | None = None
    email: str | None = None
    created_at: int
    updated_at: int
    last_seen_at: int


class UserPublic(CamelModel):
    """Another user as seen in search results."""
    id: UUID
    name: str
    image_url: str | None = None
    last_seen_at: int
    is_online: bool = False


class PresenceResponse(CamelModel):
    last_seen_at: int | None
