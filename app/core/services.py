"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging and transaction helpers

Pattern Comparison:
    - ServiceResult: expected failures (validation, ownership, business rules)
    - Exceptions: unexpected or infrastructure failures (database timeouts)

Usage:
    from core.services import BaseService, ServiceResult

    class ShareService(BaseService):
        def revoke(self, share_id: int, owner_id: int) -> ServiceResult[Share]:
            share = Share.objects.filter(pk=share_id).first()
            if share is None:
                return ServiceResult.failure("Share not found", error_code="SHARE_NOT_FOUND")
            if share.owner_id != owner_id:
                return ServiceResult.failure("Not the share owner", error_code="NOT_OWNER")

            with self.atomic():
                share.deactivate()

            self.get_logger().info("Share revoked", extra={"share_id": share.id})
            return ServiceResult.success(share)

    # In view
    result = ShareService().revoke(share_id, request.user.id)
    if result:
        return Response(status=204)
    return Response(result.to_response(), status=400)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

    from core.exceptions import BaseApplicationError

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        result = ShareService().create_share(file_id, owner_id, "DOWNLOAD")
        if result.success:
            share = result.data
        else:
            logger.info("Share not created: %s", result.error_code)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Alias for success() - use whichever reads better in context."""
        return cls(success=True, data=data)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "max_access must be at least 1",
                error_code="INVALID_MAX_ACCESS",
                errors={"max_access": ["Must be at least 1"]},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(
        cls,
        exc: BaseApplicationError | Exception,
        error_code: str | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message and error code.

        Args:
            exc: The caught exception
            error_code: Optional override (defaults to the exception's code,
                then to the class name)

        Returns:
            ServiceResult with error details from exception
        """
        message = getattr(exc, "message", None) or str(exc)
        code = error_code or getattr(exc, "error_code", None)
        return cls(
            success=False,
            error=message,
            error_code=code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with success status and data or error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow `if result:` as shorthand for `if result.success:`."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Collaborators (config, clock, mail sender, file store) are passed
          to __init__ so tests can swap them
        - Services hold no per-request state
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        If any operation in the block raises, every change made in the
        block is rolled back. Nested use creates a savepoint.

        Example:
            with self.atomic():
                updated = Share.objects.filter(...).update(...)
                ShareAccess.objects.create(...)
        """
        with transaction.atomic():
            yield
