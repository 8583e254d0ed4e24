"""Error Hierarchy — typed, categorized exceptions for every Parley failure mode.

Invariants:
    - Each subclass fixes its code, category, severity and HTTP status as class
      attributes; instances only vary in message and context
    - Caller errors (4xx) are raised before any write begins
    - to_response() renders the single REST error envelope used by every route
    - Messages are user-facing; internals go in ErrorContext.debug_info, which
      is logged but never rendered
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Where an error happened, for logs and the response envelope."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    resource_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class ParleyError(Exception):
    """Base exception for all Parley errors."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def details(self) -> dict[str, Any]:
        """Extra, user-safe fields merged into the envelope."""
        return {}

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                    "resource_id": self.context.resource_id,
                },
                **self.details(),
            }
        }


# ─── Caller Errors (4xx) ─────────────────────────────────────────

class UnauthorizedError(ParleyError):
    """No verified caller identity, or the presented token is invalid."""
    code = "UNAUTHORIZED"
    category = ErrorCategory.AUTHENTICATION
    severity = ErrorSeverity.WARNING
    http_status = 401

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("Unauthorized", context)


class ProfileMissingError(ParleyError):
    """Identity is verified but no user record is linked to it yet."""
    code = "PROFILE_MISSING"
    category = ErrorCategory.CONFLICT
    severity = ErrorSeverity.WARNING
    http_status = 409

    def __init__(self, context: ErrorContext | None = None):
        super().__init__("User profile not found. Please refresh the app.", context)


class ForbiddenError(ParleyError):
    """Caller is not a member of the conversation or does not own the resource."""
    code = "FORBIDDEN"
    category = ErrorCategory.AUTHORIZATION
    severity = ErrorSeverity.WARNING
    http_status = 403

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(f"Forbidden: {message}", context)


class DomainValidationError(ParleyError):
    """Input breaks a domain rule (empty body, short group name, ...)."""
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(message, context)
        self.field = field

    def details(self) -> dict[str, Any]:
        return {"field": self.field}


class ResourceNotFoundError(ParleyError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        context = context or ErrorContext()
        context.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' not found", context)
        self.resource_type = resource_type


class ConflictError(ParleyError):
    """Concurrent write collided on a uniqueness constraint."""
    code = "CONFLICT"
    category = ErrorCategory.CONFLICT
    http_status = 409


# ─── Infrastructure Errors (5xx) ─────────────────────────────────

class DatabaseError(ParleyError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation
