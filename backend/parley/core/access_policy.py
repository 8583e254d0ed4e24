"""Access Policy — explicit per-operation table for caller failures.

Each operation states, for each way the caller can fail to qualify, whether the
failure is raised to the client or degraded to the operation's empty result:

    missing_identity  no verified identity on the request
    missing_profile   identity present, no linked user record
    forbidden         the membership gate (or an ownership check) refused

Invariants:
    - Every Operation has exactly one entry in OPERATION_POLICIES
    - Mutations raise on every failure except the opportunistic ones
      (mark_read, set_typing's identity checks)
    - Degraded reads never reveal whether a guessed id exists
"""

from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    RAISE = "raise"
    DEGRADE = "degrade"


class Operation(str, Enum):
    UPSERT_USER = "upsert_user"
    GET_CURRENT_PROFILE = "get_current_profile"
    TOUCH_PRESENCE = "touch_presence"
    SEARCH_USERS = "search_users"
    GET_OR_CREATE_DM = "get_or_create_dm"
    CREATE_GROUP = "create_group"
    GET_PREVIEW = "get_preview"
    LIST_MINE = "list_mine"
    MARK_READ = "mark_read"
    SEND_MESSAGE = "send_message"
    DELETE_MESSAGE = "delete_message"
    LIST_MESSAGES = "list_messages"
    TOGGLE_REACTION = "toggle_reaction"
    LIST_REACTIONS = "list_reactions"
    SET_TYPING = "set_typing"
    LIST_TYPING = "list_typing"


@dataclass(frozen=True)
class AccessPolicy:
    missing_identity: Outcome
    missing_profile: Outcome
    forbidden: Outcome


_RAISE = Outcome.RAISE
_DEGRADE = Outcome.DEGRADE

STRICT = AccessPolicy(_RAISE, _RAISE, _RAISE)
LENIENT = AccessPolicy(_DEGRADE, _DEGRADE, _DEGRADE)

OPERATION_POLICIES: dict[Operation, AccessPolicy] = {
    Operation.UPSERT_USER: STRICT,
    Operation.GET_CURRENT_PROFILE: LENIENT,
    # missing profile is never hit: the heartbeat creates one
    Operation.TOUCH_PRESENCE: LENIENT,
    Operation.SEARCH_USERS: LENIENT,
    Operation.GET_OR_CREATE_DM: STRICT,
    Operation.CREATE_GROUP: STRICT,
    Operation.GET_PREVIEW: LENIENT,
    Operation.LIST_MINE: LENIENT,
    Operation.MARK_READ: LENIENT,
    Operation.SEND_MESSAGE: STRICT,
    Operation.DELETE_MESSAGE: STRICT,
    Operation.LIST_MESSAGES: AccessPolicy(_RAISE, _DEGRADE, _DEGRADE),
    Operation.TOGGLE_REACTION: STRICT,
    Operation.LIST_REACTIONS: LENIENT,
    Operation.SET_TYPING: AccessPolicy(_DEGRADE, _DEGRADE, _RAISE),
    Operation.LIST_TYPING: LENIENT,
}


def policy_for(operation: Operation) -> AccessPolicy:
    return OPERATION_POLICIES[operation]
