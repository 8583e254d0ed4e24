"""ConversationMember ORM — join row carrying a user's read cursor.

Invariants:
    - (conversation_id, user_id) is unique
    - last_read_at never moves backwards
"""

import uuid

from sqlalchemy import BigInteger, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from parley.db.base import Base


class ConversationMember(Base):
    """Membership of one user in one conversation."""
    __tablename__ = "conversation_members"
    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "user_id",
            name="uq_conversation_members_conversation_user",
        ),
        Index("idx_conversation_members_user", "user_id"),
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
    joined_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_read_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    conversation: Mapped["Conversation"] = relationship(
        "Conversation", back_populates="members",
    )
