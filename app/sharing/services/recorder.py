"""
Access recorder.

Commits one access against a share: appends the ShareAccess row,
increments access_count and deactivates the share when its budget is
used up, all in one transaction.

Concurrency:
    The increment is a single conditional UPDATE that only matches while
    the share is still usable (active, unexpired, below max_access). The
    database serializes concurrent UPDATEs on the same row and
    re-evaluates the WHERE clause for the waiting writer, so at most
    max_access increments can ever match. A writer whose UPDATE matches
    no row gets AccessConflictError and nothing is written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import F

from core.clock import SystemClock
from core.decorators import translate_store_errors
from core.helpers import mask_token
from core.services import BaseService
from sharing.exceptions import AccessConflictError, ShareAccessForbiddenError
from sharing.models import (
    AccessType,
    DeactivationReason,
    Share,
    ShareAccess,
    SharePermission,
)
from sharing.validators import parse_access_type

if TYPE_CHECKING:
    from core.protocols import Clock


class AccessRecorder(BaseService):
    """
    Record granted accesses and enforce the access ceiling.

    Call only after SharePolicyEngine.resolve_access granted the request
    and only when content will actually be served.

    Usage:
        recorder = AccessRecorder()
        try:
            recorder.record_access(share, AccessType.VIEW, ip, user_agent)
        except AccessConflictError:
            # Share was exhausted/revoked meanwhile; resolve again
            ...
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()

    @translate_store_errors
    def record_access(
        self,
        share: Share,
        access_type: AccessType | str,
        accessor_ip: str = "",
        user_agent: str = "",
    ) -> ShareAccess:
        """
        Append an access row and bump the share's counter atomically.

        Updates `share` in place with the committed counter and active flag.

        Returns:
            The created ShareAccess row

        Raises:
            AccessConflictError: The share is no longer usable
            ShareAccessForbiddenError: DOWNLOAD on a VIEW_ONLY share
            TransientStoreError: Database timeout or connection failure
        """
        access_type = parse_access_type(access_type)
        if (
            access_type == AccessType.DOWNLOAD
            and share.permission == SharePermission.VIEW_ONLY
        ):
            raise ShareAccessForbiddenError(
                "This share does not allow downloads",
                details={"share_id": share.pk},
            )

        now = self.clock.now()
        with self.atomic():
            updated = (
                Share.objects.usable(now)
                .filter(pk=share.pk)
                .update(access_count=F("access_count") + 1, updated_at=now)
            )
            if not updated:
                self.get_logger().info(
                    f"Access on share {share.pk} lost to a concurrent update",
                    extra={"share_id": share.pk, "token_prefix": mask_token(share.share_token)},
                )
                raise AccessConflictError(
                    "Share is no longer usable",
                    details={"share_id": share.pk},
                )

            share.refresh_from_db(fields=["access_count", "max_access", "is_active"])
            access = ShareAccess.objects.create(
                share=share,
                accessor_ip=accessor_ip or "",
                user_agent=(user_agent or "")[:512],
                accessed_at=now,
                access_type=access_type,
                granted=True,
            )

            deactivated = False
            if share.is_exhausted:
                deactivated = share.deactivate(DeactivationReason.EXHAUSTED, now)

        self.get_logger().info(
            f"Recorded {access_type.value} on share {share.pk}",
            extra={
                "share_id": share.pk,
                "access_type": access_type.value,
                "access_count": share.access_count,
                "max_access": share.max_access,
                "deactivated": deactivated,
                "accessor_ip": accessor_ip,
            },
        )
        return access
