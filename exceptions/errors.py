"""
Custom exception classes for the application.

All errors carry a stable code so the admin front end can branch on it.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "UPLOAD_FILE_REJECTED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# UPLOAD ERRORS
# ===================

class FileRejectedError(ValidationError):
    """Uploaded file failed a file-level check (size, extension, type, transport)."""

    def __init__(self, reasons: list[str], details: Optional[dict] = None):
        self.reasons = list(reasons)
        super().__init__(
            code="UPLOAD_FILE_REJECTED",
            message=f"Invalid file: {', '.join(self.reasons)}",
            details={"reasons": self.reasons, **(details or {})}
        )


# ===================
# STORE ERRORS
# ===================

class ConcurrentModificationError(ConflictError):
    """The stored mapping changed between read and write."""

    def __init__(self, key: str, expected_version: Optional[int]):
        super().__init__(
            code="REDIRECTS_MODIFIED_CONCURRENTLY",
            message="Redirects were changed by another request; reload and try again",
            details={"key": key, "expected_version": expected_version}
        )
