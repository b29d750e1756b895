"""
Owner-facing share management.

Provides:
- Share creation with file ownership checks
- Listing, lookup, permission changes and revocation
- Per-share and per-file statistics
- Access history and recipient notification

Expected failures (unknown ids, wrong owner, invalid input) come back as
ServiceResult failures with these error codes:

    SHARE_NOT_FOUND, FILE_NOT_FOUND      -> not found
    NOT_OWNER                            -> forbidden
    SHARE_INACTIVE                       -> conflict
    INVALID_PERMISSION, INVALID_MAX_ACCESS, INVALID_ACCESS_TYPE,
    INVALID_EMAIL                        -> validation

Database timeouts raise TransientStoreError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db.models import Count, Max, Q

from core.clock import SystemClock
from core.decorators import translate_store_errors
from core.exceptions import ValidationError
from core.services import BaseService, ServiceResult
from media.services.file_store import MediaFileStore
from sharing.config import SharingConfig
from sharing.models import AccessType, DeactivationReason, Share, ShareAccess
from sharing.services.notifications import NotificationDispatcher
from sharing.tokens import ShareTokenGenerator
from sharing.validators import parse_access_type, parse_permission, validate_max_access

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from django.db.models import QuerySet

    from core.protocols import Clock
    from sharing.services.notifications import NotificationResult, NotificationStats
    from toolkit.protocols import FileStore


@dataclass(frozen=True)
class ShareAnalyticsSummary:
    """Usage summary for one share."""

    share_id: int
    is_usable: bool
    access_count: int
    max_access: int | None
    remaining_accesses: int | None
    total_accesses: int
    view_count: int
    download_count: int
    denied_attempts: int
    accesses_24h: int
    accesses_7d: int
    last_accessed_at: datetime | None
    notifications: NotificationStats


@dataclass(frozen=True)
class FileSharingStats:
    """Sharing statistics for one file."""

    file_id: uuid.UUID
    total_shares: int
    active_shares: int
    total_access_count: int
    last_shared_at: datetime | None
    last_accessed_at: datetime | None

    @property
    def has_active_shares(self) -> bool:
        return self.active_shares > 0


class ShareService(BaseService):
    """
    Create and manage share links on behalf of their owners.

    Args:
        file_store: File store used for ownership checks
        dispatcher: Notification dispatcher for recipient emails
        token_generator: Share token source
        config: Sharing configuration
        clock: Time source

    Usage:
        service = ShareService()
        result = service.create_share(file_id, request.user.id, "DOWNLOAD", max_access=5)
        if not result:
            return Response(result.to_response(), status=400)
    """

    def __init__(
        self,
        file_store: FileStore | None = None,
        dispatcher: NotificationDispatcher | None = None,
        token_generator: ShareTokenGenerator | None = None,
        config: SharingConfig | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or SharingConfig.from_settings()
        self.clock = clock or SystemClock()
        self.file_store = file_store or MediaFileStore()
        self.dispatcher = dispatcher or NotificationDispatcher(
            file_store=self.file_store, config=self.config, clock=self.clock
        )
        self.token_generator = token_generator or ShareTokenGenerator()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @translate_store_errors
    def create_share(
        self,
        file_id: uuid.UUID,
        owner_id: int,
        permission: str,
        expires_at: datetime | None = None,
        max_access: int | None = None,
    ) -> ServiceResult[Share]:
        """
        Create a share link for a file the caller owns.

        An expiration in the past is accepted; such a share is denied
        (and deactivated) on first use.
        """
        try:
            permission = parse_permission(permission)
            max_access = validate_max_access(max_access)
        except ValidationError as e:
            return ServiceResult.from_exception(e)

        metadata = self.file_store.get_file_metadata(file_id)
        if metadata is None:
            return ServiceResult.failure("File not found", error_code="FILE_NOT_FOUND")
        if metadata.owner_id != owner_id:
            return ServiceResult.failure(
                "Only the file owner can share this file",
                error_code="NOT_OWNER",
            )

        with self.atomic():
            share = Share.objects.create(
                share_token=self.token_generator.generate_token(),
                owner_id=owner_id,
                file_id=metadata.file_id,
                permission=permission,
                expires_at=expires_at,
                max_access=max_access,
            )

        self.get_logger().info(
            f"Created share {share.pk} for file {metadata.file_id}",
            extra={
                "share_id": share.pk,
                "file_id": str(metadata.file_id),
                "owner_id": owner_id,
                "permission": permission.value,
                "max_access": max_access,
            },
        )
        return ServiceResult.success(share)

    @translate_store_errors
    def get_share(self, share_id: int, owner_id: int) -> ServiceResult[Share]:
        share = Share.objects.filter(pk=share_id).first()
        if share is None:
            return ServiceResult.failure("Share not found", error_code="SHARE_NOT_FOUND")
        if share.owner_id != owner_id:
            return ServiceResult.failure(
                "You do not own this share",
                error_code="NOT_OWNER",
            )
        return ServiceResult.success(share)

    @translate_store_errors
    def list_shares(self, owner_id: int, active_only: bool = False) -> QuerySet[Share]:
        """
        Owner's shares, newest first.

        The queryset is lazy; views evaluate it while paginating and map
        driver timeouts raised there to TransientStoreError themselves.
        """
        shares = Share.objects.for_owner(owner_id)
        if active_only:
            shares = shares.active()
        return shares.order_by("-created_at", "-pk")

    @translate_store_errors
    def revoke(
        self,
        share_id: int,
        owner_id: int,
        notify_recipients: bool = False,
    ) -> ServiceResult[Share]:
        """
        Deactivate a share. Revoking an inactive share is a no-op success.

        Args:
            notify_recipients: Email previously notified recipients
        """
        result = self.get_share(share_id, owner_id)
        if not result:
            return result
        share = result.data

        if share.deactivate(DeactivationReason.REVOKED, self.clock.now()):
            self.get_logger().info(
                f"Share {share.pk} revoked by owner",
                extra={"share_id": share.pk, "owner_id": owner_id},
            )
            if notify_recipients:
                self.dispatcher.notify_revoked(share)
        return ServiceResult.success(share)

    @translate_store_errors
    def update_permission(
        self,
        share_id: int,
        owner_id: int,
        permission: str,
    ) -> ServiceResult[Share]:
        try:
            permission = parse_permission(permission)
        except ValidationError as e:
            return ServiceResult.from_exception(e)

        result = self.get_share(share_id, owner_id)
        if not result:
            return result
        share = result.data
        if not share.is_active:
            return ServiceResult.failure(
                "Cannot change the permission of an inactive share",
                error_code="SHARE_INACTIVE",
            )

        updated = Share.objects.filter(pk=share.pk, is_active=True).update(
            permission=permission,
            updated_at=self.clock.now(),
        )
        if not updated:
            return ServiceResult.failure(
                "Cannot change the permission of an inactive share",
                error_code="SHARE_INACTIVE",
            )
        share.refresh_from_db()
        self.get_logger().info(
            f"Share {share.pk} permission set to {permission.value}",
            extra={"share_id": share.pk, "permission": permission.value},
        )
        return ServiceResult.success(share)

    @translate_store_errors
    def revoke_all_for_file(self, file_id: uuid.UUID, owner_id: int) -> ServiceResult[int]:
        """Revoke every active share of a file. Returns the number revoked."""
        metadata = self.file_store.get_file_metadata(file_id)
        if metadata is None:
            return ServiceResult.failure("File not found", error_code="FILE_NOT_FOUND")
        if metadata.owner_id != owner_id:
            return ServiceResult.failure(
                "Only the file owner can revoke its shares",
                error_code="NOT_OWNER",
            )

        now = self.clock.now()
        count = Share.objects.filter(file_id=metadata.file_id, is_active=True).update(
            is_active=False,
            deactivated_at=now,
            deactivation_reason=DeactivationReason.REVOKED,
            updated_at=now,
        )
        self.get_logger().info(
            f"Revoked {count} shares of file {metadata.file_id}",
            extra={"file_id": str(metadata.file_id), "count": count},
        )
        return ServiceResult.success(count)

    # =========================================================================
    # Reporting
    # =========================================================================

    @translate_store_errors
    def get_analytics(
        self,
        share_id: int,
        owner_id: int | None = None,
    ) -> ServiceResult[ShareAnalyticsSummary]:
        """
        Usage summary for one share.

        Args:
            owner_id: When given, the caller must own the share
        """
        if owner_id is None:
            share = Share.objects.filter(pk=share_id).first()
            if share is None:
                return ServiceResult.failure("Share not found", error_code="SHARE_NOT_FOUND")
        else:
            result = self.get_share(share_id, owner_id)
            if not result:
                return result
            share = result.data

        now = self.clock.now()
        day_ago = now - timedelta(hours=24)
        week_ago = now - timedelta(days=7)
        granted = Q(granted=True)
        counts = ShareAccess.objects.filter(share=share).aggregate(
            total=Count("id", filter=granted),
            views=Count("id", filter=granted & Q(access_type=AccessType.VIEW)),
            downloads=Count("id", filter=granted & Q(access_type=AccessType.DOWNLOAD)),
            denied=Count("id", filter=Q(granted=False)),
            day=Count("id", filter=granted & Q(accessed_at__gte=day_ago)),
            week=Count("id", filter=granted & Q(accessed_at__gte=week_ago)),
            last_accessed_at=Max("accessed_at", filter=granted),
        )

        return ServiceResult.success(
            ShareAnalyticsSummary(
                share_id=share.pk,
                is_usable=share.is_usable(now),
                access_count=share.access_count,
                max_access=share.max_access,
                remaining_accesses=share.remaining_accesses,
                total_accesses=counts["total"],
                view_count=counts["views"],
                download_count=counts["downloads"],
                denied_attempts=counts["denied"],
                accesses_24h=counts["day"],
                accesses_7d=counts["week"],
                last_accessed_at=counts["last_accessed_at"],
                notifications=self.dispatcher.get_stats(share),
            )
        )

    @translate_store_errors
    def get_file_sharing_stats(
        self,
        file_id: uuid.UUID,
        owner_id: int,
    ) -> ServiceResult[FileSharingStats]:
        metadata = self.file_store.get_file_metadata(file_id)
        if metadata is None:
            return ServiceResult.failure("File not found", error_code="FILE_NOT_FOUND")
        if metadata.owner_id != owner_id:
            return ServiceResult.failure(
                "Only the file owner can view its sharing statistics",
                error_code="NOT_OWNER",
            )

        shares = Share.objects.filter(file_id=metadata.file_id)
        share_counts = shares.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            last_shared_at=Max("created_at"),
        )
        access_counts = ShareAccess.objects.filter(
            share__file_id=metadata.file_id, granted=True
        ).aggregate(total=Count("id"), last_accessed_at=Max("accessed_at"))

        return ServiceResult.success(
            FileSharingStats(
                file_id=metadata.file_id,
                total_shares=share_counts["total"],
                active_shares=share_counts["active"],
                total_access_count=access_counts["total"],
                last_shared_at=share_counts["last_shared_at"],
                last_accessed_at=access_counts["last_accessed_at"],
            )
        )

    @translate_store_errors
    def list_accesses(
        self,
        share_id: int,
        owner_id: int,
        access_type: str | None = None,
    ) -> ServiceResult[QuerySet[ShareAccess]]:
        """Access history of a share, newest first, optionally by type."""
        result = self.get_share(share_id, owner_id)
        if not result:
            return result
        accesses = ShareAccess.objects.filter(share=result.data)
        if access_type:
            try:
                accesses = accesses.filter(access_type=parse_access_type(access_type))
            except ValidationError as e:
                return ServiceResult.from_exception(e)
        return ServiceResult.success(accesses.order_by("-accessed_at", "-pk"))

    # =========================================================================
    # Notifications
    # =========================================================================

    @translate_store_errors
    def notify(
        self,
        share_id: int,
        recipient_emails: list[str],
        owner_id: int | None = None,
    ) -> ServiceResult[list[NotificationResult]]:
        """
        Email recipients about a share.

        Partial delivery failure is a success result; inspect each
        NotificationResult. Inactive shares are rejected.
        """
        if owner_id is None:
            share = Share.objects.filter(pk=share_id).first()
            if share is None:
                return ServiceResult.failure("Share not found", error_code="SHARE_NOT_FOUND")
        else:
            result = self.get_share(share_id, owner_id)
            if not result:
                return result
            share = result.data

        if not share.is_usable(self.clock.now()):
            return ServiceResult.failure(
                "Cannot send notifications for an unusable share",
                error_code="SHARE_INACTIVE",
            )
        return ServiceResult.success(self.dispatcher.notify(share, recipient_emails))
