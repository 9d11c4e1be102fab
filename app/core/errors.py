"""Error Hierarchy — typed, categorized exceptions for every student-lifecycle failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope; debug_info only when include_debug=True
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AppError base: FastAPI global handler catches all (uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    student_id: str | None = None
    user_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class AppError(Exception):
    """Base exception for all application errors."""

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

    def to_response(self, include_debug: bool = False) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.context.user_message or self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": {
                "student_id": self.context.student_id,
                "user_id": self.context.user_id,
            },
        }
        if include_debug and self.context.debug_info:
            body["debug"] = self.context.debug_info
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(AppError):
    """Payload or identifier failed validation. Carries every violation."""
    def __init__(
        self, message: str, details: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.details = details or [message]

    def to_response(self, include_debug: bool = False) -> dict:
        response = super().to_response(include_debug)
        response["error"]["details"] = self.details
        return response


class UnsupportedMediaError(AppError):
    """Uploaded file has a MIME type outside the allowed set."""
    def __init__(
        self, mime_type: str, allowed: list[str],
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Unsupported file type '{mime_type}'. Allowed: {', '.join(allowed)}",
            "UNSUPPORTED_MEDIA_TYPE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.allowed = allowed


class FileTooLargeError(AppError):
    """Uploaded file exceeds the size limit."""
    def __init__(
        self, size: int, max_bytes: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"File size {size} bytes exceeds the {max_bytes} byte limit",
            "FILE_TOO_LARGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 413,
        )
        self.max_bytes = max_bytes


class NotFoundError(AppError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class ConflictError(AppError):
    """Write rejected by a uniqueness rule (duplicate email)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(AppError):
    """Asset store upload or delete failed."""
    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Asset store {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class DatabaseError(AppError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class TransientWriteError(DatabaseError):
    """Write conflict or lock contention; the same transaction may succeed if retried."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message, "commit", context)
        self.code = "TRANSIENT_WRITE_CONFLICT"


class InternalError(AppError):
    """Unrecoverable failure (retries exhausted or unexpected state)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
