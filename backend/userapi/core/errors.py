"""Error Hierarchy: typed, categorized exceptions for every User API failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) carry a human-readable message; internal errors
      (500-level) always expose the generic "Internal Server Error" message
    - to_response() produces the single REST error envelope used by every route

Design Decisions:
    - Single hierarchy with UserApiError base: one FastAPI handler catches all
    - BadRequestError carries a BadRequestKind so clients can branch on the
      code without parsing the message
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

GENERIC_INTERNAL_MESSAGE = "Internal Server Error"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories, one per HTTP failure class."""
    BAD_REQUEST = "bad_request"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class BadRequestKind(str, Enum):
    """Subkinds of a rejected request body."""
    BADLY_FORMED_JSON = "badly_formed_json"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_FIELD = "unknown_field"
    EMPTY_BODY = "empty_body"
    MULTIPLE_OBJECTS = "multiple_objects"


@dataclass
class ErrorContext:
    """Context attached to an error for the response envelope and the logs."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    field: str | None = None
    offset: int | None = None
    user_id: int | None = None
    debug_info: dict[str, Any] | None = None


class UserApiError(Exception):
    """Base exception for all User API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "field": self.context.field,
                    "offset": self.context.offset,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class BadRequestError(UserApiError):
    """Request body was rejected by the payload classifier."""
    def __init__(
        self,
        kind: BadRequestKind,
        message: str,
        field: str | None = None,
        offset: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.field = field
        ctx.offset = offset
        super().__init__(
            message, kind.name, ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, ctx, 400,
        )
        self.kind = kind
        self.field = field
        self.offset = offset


class UnsupportedMediaTypeError(UserApiError):
    """Content-Type header present but not application/json."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Content-Type header is not application/json",
            "UNSUPPORTED_MEDIA_TYPE", ErrorCategory.UNSUPPORTED_MEDIA_TYPE,
            ErrorSeverity.WARNING, context, 415,
        )


class PayloadTooLargeError(UserApiError):
    """Request body exceeded the configured size cap."""
    def __init__(self, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"Request body must not be larger than {_format_size(limit)}",
            "PAYLOAD_TOO_LARGE", ErrorCategory.PAYLOAD_TOO_LARGE,
            ErrorSeverity.WARNING, context, 413,
        )
        self.limit = limit


class NotFoundError(UserApiError):
    """Requested resource does not exist, or its id is not a valid id."""
    def __init__(self, resource_type: str = "User", context: ErrorContext | None = None):
        super().__init__(
            f"{resource_type} not found",
            "NOT_FOUND", ErrorCategory.NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )
        self.resource_type = resource_type


# ─── Internal Errors (500-level) ────────────────────────────────

class InternalError(UserApiError):
    """Unexpected failure. Detail goes to the logs, never to the client."""
    def __init__(self, detail: str = "", context: ErrorContext | None = None):
        super().__init__(
            GENERIC_INTERNAL_MESSAGE,
            "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.detail = detail


class StoreError(InternalError):
    """Database operation failed."""
    def __init__(self, detail: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {detail}", context)
        self.operation = operation


def _format_size(limit: int) -> str:
    mb = 1024 * 1024
    if limit >= mb and limit % mb == 0:
        return f"{limit // mb}MB"
    return f"{limit} bytes"
