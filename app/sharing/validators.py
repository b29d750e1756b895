"""
Input validation for share operations.

Each helper returns the normalized value or raises
core.exceptions.ValidationError with a specific error code.

Usage:
    from sharing.validators import parse_permission, validate_max_access

    permission = parse_permission("DOWNLOAD")
    validate_max_access(5)
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from core.exceptions import ValidationError
from sharing.models import AccessType, SharePermission


def parse_permission(value: SharePermission | str) -> SharePermission:
    try:
        return SharePermission(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown permission: {value!r}",
            error_code="INVALID_PERMISSION",
            details={"allowed": list(SharePermission.values)},
        ) from exc


def parse_access_type(value: AccessType | str) -> AccessType:
    try:
        return AccessType(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown access type: {value!r}",
            error_code="INVALID_ACCESS_TYPE",
            details={"allowed": list(AccessType.values)},
        ) from exc


def validate_max_access(value: int | None) -> int | None:
    """None means unlimited; otherwise a positive integer is required."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(
            "max_access must be a positive integer",
            error_code="INVALID_MAX_ACCESS",
            details={"max_access": value},
        )
    return value


def normalize_email(value: str) -> str:
    """
    Strip and syntax-check an email address.

    Raises:
        ValidationError: If the address is malformed
    """
    email = (value or "").strip()
    try:
        validate_email(email)
    except DjangoValidationError as exc:
        raise ValidationError(
            "Invalid email address",
            error_code="INVALID_EMAIL",
            details={"email": email},
        ) from exc
    return email
