"""
Share policy engine.

Decides whether a share token grants a requested kind of access.

Evaluation order for resolve_access:
    1. Unknown token                       -> NOT_FOUND
    2. Share inactive                      -> reason it was deactivated
    3. Expiration passed                   -> EXPIRED (share deactivated)
    4. Access budget used up               -> ACCESS_LIMIT_REACHED (share deactivated)
    5. DOWNLOAD requested on VIEW_ONLY     -> PERMISSION_DENIED (no state change)
    6. Otherwise                           -> GRANTED

Expiration and exhaustion are checked before permission, so an
expired or exhausted share always reports its own reason.

peek_access runs steps 1-4 without writing anything, for preview pages
that show the remaining access budget.

Granting never changes counters. Callers that serve content must then
call AccessRecorder.record_access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from core.clock import SystemClock
from core.decorators import translate_store_errors
from core.helpers import mask_token
from core.services import BaseService
from sharing.config import SharingConfig
from sharing.exceptions import (
    AccessLimitReachedError,
    ShareAccessForbiddenError,
    ShareExpiredError,
    ShareRevokedError,
    ShareTokenNotFoundError,
    ShareUnavailableError,
)
from sharing.models import (
    AccessType,
    DeactivationReason,
    Share,
    ShareAccess,
    SharePermission,
)
from sharing.validators import parse_access_type

if TYPE_CHECKING:
    from datetime import datetime

    from core.protocols import Clock

security_logger = logging.getLogger("sharing.security")


class DenialReason(str, Enum):
    """Precise reason an access attempt was denied."""

    NOT_FOUND = "NOT_FOUND"
    REVOKED_OR_EXHAUSTED = "REVOKED_OR_EXHAUSTED"
    EXPIRED = "EXPIRED"
    ACCESS_LIMIT_REACHED = "ACCESS_LIMIT_REACHED"
    PERMISSION_DENIED = "PERMISSION_DENIED"


_DENIAL_ERRORS: dict[DenialReason, type[ShareUnavailableError]] = {
    DenialReason.NOT_FOUND: ShareTokenNotFoundError,
    DenialReason.REVOKED_OR_EXHAUSTED: ShareRevokedError,
    DenialReason.EXPIRED: ShareExpiredError,
    DenialReason.ACCESS_LIMIT_REACHED: AccessLimitReachedError,
    DenialReason.PERMISSION_DENIED: ShareAccessForbiddenError,
}

# Inactive shares report the reason recorded when they were deactivated
_INACTIVE_REASONS = {
    DeactivationReason.EXPIRED: DenialReason.EXPIRED,
    DeactivationReason.EXHAUSTED: DenialReason.ACCESS_LIMIT_REACHED,
}


@dataclass(frozen=True)
class AccessDecision:
    """
    Outcome of evaluating a share token.

    Attributes:
        granted: Whether access is allowed
        share: The matched share (None only for NOT_FOUND)
        reason: Denial reason (None when granted)
    """

    granted: bool
    share: Share | None = None
    reason: DenialReason | None = None

    @classmethod
    def grant(cls, share: Share) -> AccessDecision:
        return cls(granted=True, share=share)

    @classmethod
    def deny(cls, reason: DenialReason, share: Share | None = None) -> AccessDecision:
        return cls(granted=False, share=share, reason=reason)

    def to_error(self) -> ShareUnavailableError:
        """Typed exception for this denial. Invalid on a granted decision."""
        if self.granted:
            raise ValueError("A granted decision has no error")
        return _DENIAL_ERRORS[self.reason](
            f"Share access denied: {self.reason.value}",
            details={"share_id": self.share.pk if self.share else None},
        )

    def __bool__(self) -> bool:
        return self.granted


class SharePolicyEngine(BaseService):
    """
    Evaluate share tokens against the share lifecycle rules.

    Args:
        config: Sharing configuration (denied-attempt recording switch)
        clock: Time source, defaults to the system clock

    Usage:
        engine = SharePolicyEngine()
        decision = engine.resolve_access(token, AccessType.DOWNLOAD, ip, user_agent)
        if decision:
            AccessRecorder().record_access(decision.share, AccessType.DOWNLOAD, ip, user_agent)
    """

    def __init__(
        self,
        config: SharingConfig | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or SharingConfig.from_settings()
        self.clock = clock or SystemClock()

    @translate_store_errors
    def resolve_access(
        self,
        token: str,
        requested_type: AccessType | str,
        accessor_ip: str = "",
        user_agent: str = "",
    ) -> AccessDecision:
        """
        Decide whether `token` grants `requested_type` access.

        Lazily deactivates shares found expired or exhausted. When
        denied-attempt recording is enabled, denials against an existing
        share are appended to its access log with granted=False.

        Returns:
            AccessDecision (granted or denied with reason)
        """
        requested_type = parse_access_type(requested_type)
        now = self.clock.now()

        share = Share.objects.filter(share_token=token).first()
        if share is None:
            decision = AccessDecision.deny(DenialReason.NOT_FOUND)
            self._log_denial(token, decision, requested_type, accessor_ip)
            return decision

        with self.atomic():
            reason = self._lifecycle_denial(share, now, apply=True)
            if (
                reason is None
                and requested_type == AccessType.DOWNLOAD
                and share.permission == SharePermission.VIEW_ONLY
            ):
                reason = DenialReason.PERMISSION_DENIED

            if reason is None:
                return AccessDecision.grant(share)

            decision = AccessDecision.deny(reason, share)
            if self.config.record_denied_access:
                ShareAccess.objects.create(
                    share=share,
                    accessor_ip=accessor_ip or "",
                    user_agent=(user_agent or "")[:512],
                    accessed_at=now,
                    access_type=requested_type,
                    granted=False,
                    denial_reason=reason.value,
                )

        self._log_denial(token, decision, requested_type, accessor_ip)
        return decision

    @translate_store_errors
    def peek_access(self, token: str) -> AccessDecision:
        """
        Side-effect-free check of whether a token is currently usable.

        Performs the lookup, active, expiration and budget checks only.
        Never deactivates, never logs an access row.
        """
        share = Share.objects.filter(share_token=token).first()
        if share is None:
            return AccessDecision.deny(DenialReason.NOT_FOUND)
        reason = self._lifecycle_denial(share, self.clock.now(), apply=False)
        if reason is not None:
            return AccessDecision.deny(reason, share)
        return AccessDecision.grant(share)

    def _lifecycle_denial(
        self,
        share: Share,
        now: datetime,
        apply: bool,
    ) -> DenialReason | None:
        """
        Steps 2-4 of the evaluation order.

        With apply=True, shares found expired or exhausted are
        deactivated with the matching reason.
        """
        if not share.is_active:
            return _INACTIVE_REASONS.get(
                share.deactivation_reason, DenialReason.REVOKED_OR_EXHAUSTED
            )

        if share.is_expired(now):
            if apply:
                share.deactivate(DeactivationReason.EXPIRED, now)
            return DenialReason.EXPIRED

        if share.is_exhausted:
            if apply:
                share.deactivate(DeactivationReason.EXHAUSTED, now)
            return DenialReason.ACCESS_LIMIT_REACHED

        return None

    @staticmethod
    def _log_denial(
        token: str,
        decision: AccessDecision,
        requested_type: AccessType,
        accessor_ip: str,
    ) -> None:
        security_logger.info(
            f"Share access denied: {decision.reason.value}",
            extra={
                "token_prefix": mask_token(token),
                "share_id": decision.share.pk if decision.share else None,
                "reason": decision.reason.value,
                "access_type": requested_type.value,
                "accessor_ip": accessor_ip,
            },
        )
