"""TypingEvent ORM — ephemeral typing flag, one row per (conversation, user).

Invariants:
    - (conversation_id, user_id) is unique; the row is patched, not re-inserted
    - A row is stale once expires_at <= now; stale rows may linger until swept
"""

import uuid

from sqlalchemy import BigInteger, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class TypingEvent(Base):
    __tablename__ = "typing_events"
    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "user_id",
            name="uq_typing_events_conversation_user",
        ),
        Index("idx_typing_events_expires_at", "expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
