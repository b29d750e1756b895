"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- A retryable/non-retryable distinction for infrastructure failures

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    ├── ConflictError - State conflicts (lost concurrent updates)
    ├── ExternalServiceError - Third-party service failures
    └── TransientStoreError - Database timeouts / dropped connections

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError("max_access must be at least 1", error_code="INVALID_MAX_ACCESS")

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        http_status: Status code views use when rendering this error
        retryable: Whether the caller may retry the same operation

    Example:
        try:
            share = ShareService().get_share(share_id, owner_id=user.id)
        except NotFoundError as e:
            logger.warning("Share lookup failed", extra={"error_code": e.error_code})
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (when present) details keys

        Example:
            {
                "error": "Share not found",
                "error_code": "SHARE_NOT_FOUND",
                "details": {"share_id": 123}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Out-of-range values (non-positive max_access, past expiration)
    - Unknown enum values
    - Malformed email addresses

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        share = Share.objects.filter(pk=share_id).first()
        if share is None:
            raise NotFoundError(
                "Share not found",
                error_code="SHARE_NOT_FOUND",
                details={"share_id": share_id},
            )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    Use for:
    - Acting on a resource owned by somebody else
    - Requesting an access level a grant does not include

    Note:
        For authentication failures (missing/invalid token), use DRF's
        AuthenticationFailed. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Concurrent modification conflicts (conditional update matched no row)
    - Invalid state transitions
    - Exhausted retries while generating a unique value

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
        Callers may re-read state and retry.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - SMTP or mail provider failures
    - Network timeouts talking to collaborators

    Note:
        Log the original error for debugging but don't expose
        internal details to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502


class TransientStoreError(BaseApplicationError):
    """
    Raised when the database times out or drops the connection.

    The operation did not commit and may be retried with backoff.
    Produced by core.decorators.translate_store_errors from
    django.db.OperationalError / InterfaceError.

    Example:
        try:
            ShareService().create_share(...)
        except TransientStoreError as e:
            return Response(e.to_dict(), status=503, headers={"Retry-After": "1"})
    """

    default_error_code: str = "TRANSIENT_STORE_FAILURE"
    http_status: int = 503
    retryable: bool = True
