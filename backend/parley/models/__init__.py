"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Timestamps are BigInteger epoch milliseconds supplied by the service clock
    - Uniqueness invariants live in the schema as named constraints

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from parley.models.user import User  # noqa: F401
from parley.models.conversation import Conversation  # noqa: F401
from parley.models.conversation_member import ConversationMember  # noqa: F401
from parley.models.message import Message  # noqa: F401
from parley.models.message_reaction import MessageReaction  # noqa: F401
from parley.models.typing_event import TypingEvent  # noqa: F401
