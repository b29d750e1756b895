"""
Sharing-specific errors.

The policy engine reports denials as AccessDecision values. These
exceptions exist for callers that prefer to raise, via
AccessDecision.to_error(), and for the access recorder's lost races.

Exception Hierarchy:
    ShareUnavailableError (PermissionDeniedError)
    ├── ShareTokenNotFoundError - no share has this token
    ├── ShareRevokedError - share is inactive
    ├── ShareExpiredError - expiration passed
    ├── AccessLimitReachedError - access budget used up
    └── ShareAccessForbiddenError - permission does not cover the request
    AccessConflictError (ConflictError) - conditional update lost a race

Note:
    Every ShareUnavailableError renders to the same public message so
    callers cannot tell a revoked token from one that never existed.
"""

from __future__ import annotations

from core.exceptions import ConflictError, PermissionDeniedError

PUBLIC_DENIAL_MESSAGE = "This share link is invalid or no longer available."


class ShareUnavailableError(PermissionDeniedError):
    """Base class for denied share-link access."""

    default_error_code: str = "SHARE_UNAVAILABLE"
    http_status: int = 404

    def to_public_dict(self) -> dict[str, str]:
        """Response body safe to return to anonymous link holders."""
        return {"error": PUBLIC_DENIAL_MESSAGE, "error_code": "SHARE_UNAVAILABLE"}


class ShareTokenNotFoundError(ShareUnavailableError):
    default_error_code: str = "NOT_FOUND"


class ShareRevokedError(ShareUnavailableError):
    default_error_code: str = "REVOKED_OR_EXHAUSTED"


class ShareExpiredError(ShareUnavailableError):
    default_error_code: str = "EXPIRED"


class AccessLimitReachedError(ShareUnavailableError):
    default_error_code: str = "ACCESS_LIMIT_REACHED"


class ShareAccessForbiddenError(ShareUnavailableError):
    default_error_code: str = "PERMISSION_DENIED"


class AccessConflictError(ConflictError):
    """
    The share stopped being usable between resolution and recording.

    Raised when the recorder's guarded increment matches no row. The
    caller should resolve the token again, which yields the precise
    denial reason.
    """

    default_error_code: str = "SHARE_NO_LONGER_USABLE"
