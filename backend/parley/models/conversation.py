"""Conversation ORM — a DM or a named group.

Invariants:
    - type is "dm" or "group" and never changes after creation
    - dm_key is set only for DMs and is unique across all conversations
    - name is set only for groups
    - updated_at is bumped on every new message and every soft delete
    - last_message_seq only grows; each send claims the next value atomically
"""

import uuid

from sqlalchemy import (
    String, BigInteger, ForeignKey, UniqueConstraint, Index, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class Conversation(Base):
    """Conversation aggregate root — owns memberships, messages, typing events."""
    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("dm_key", name="uq_conversations_dm_key"),
        CheckConstraint("type IN ('dm', 'group')", name="type"),
        Index("idx_conversations_updated_at", "updated_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    dm_key: Mapped[str | None] = mapped_column(String(80), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_message_seq: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, server_default="0",
    )

    members: Mapped[list["ConversationMember"]] = relationship(
        "ConversationMember", back_populates="conversation",
        cascade="all, delete-orphan",
    )
