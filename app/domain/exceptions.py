"""Domain exceptions for the back-office cache service.

Defines domain-level exceptions that represent rule violations and cache
failures. These exceptions are independent of infrastructure concerns.
Presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class BackofficeException(Exception):
    """Base exception for all back-office application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. key, step).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(BackofficeException):
    """Raised when input validation fails (e.g. invalid key component)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class CacheError(BackofficeException):
    """A cache step failed. Never raised past the cache layer boundary.

    Produced by fan-out, optimistic and admin services and carried in
    CacheOperationResult.error after being logged.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        key: str | None = None,
    ) -> None:
        """Initialize with the failed operation and reason.

        Args:
            operation: Cache step that failed (e.g. 'delete_keys', 'invalidate_tags').
            reason: Underlying error text.
            key: Optional key, tag or pattern the step was working on.
        """
        details: dict[str, Any] = {"operation": operation}
        if key:
            details["key"] = key
        super().__init__(f"Cache {operation} failed: {reason}", "CACHE_ERROR", details)


class CacheOperationNotAllowedException(BackofficeException):
    """Raised when a destructive admin cache operation is used outside development."""

    def __init__(self, operation: str, environment: str) -> None:
        """Initialize with the refused operation and current environment.

        Args:
            operation: Admin operation that was refused (e.g. 'clear_all').
            environment: Environment name from settings.
        """
        super().__init__(
            f"Cache {operation} is only available in development",
            "CACHE_OPERATION_NOT_ALLOWED",
            {"operation": operation, "environment": environment},
        )


class CacheUnavailableException(BackofficeException):
    """Raised by diagnostics endpoints when the store cannot be reached."""

    def __init__(self, message: str = "Cache store unavailable") -> None:
        super().__init__(message, "CACHE_UNAVAILABLE")
