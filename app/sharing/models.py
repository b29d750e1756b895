"""
Share link models.

Provides:
- Share: a revocable, tokenized grant of access to one file
- ShareAccess: append-only audit row per access attempt
- ShareNotification: one row per email notification about a share

Shares are never hard-deleted; they are only flagged inactive (revoked,
expired or exhausted) so their audit trail survives. Access and
notification rows are removed in bulk by age-based maintenance only.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.exceptions import ValidationError
from core.models import BaseModel

if TYPE_CHECKING:
    from datetime import datetime


# =============================================================================
# Enums
# =============================================================================


class SharePermission(models.TextChoices):
    """What a share link lets its holder do."""

    VIEW_ONLY = "VIEW_ONLY", "View only"
    DOWNLOAD = "DOWNLOAD", "View and download"


class AccessType(models.TextChoices):
    """Kind of access requested through a share link."""

    VIEW = "VIEW", "View"
    DOWNLOAD = "DOWNLOAD", "Download"


class DeactivationReason(models.TextChoices):
    """Why a share stopped being active."""

    REVOKED = "REVOKED", "Revoked by owner"
    EXPIRED = "EXPIRED", "Expired"
    EXHAUSTED = "EXHAUSTED", "Access limit reached"


# =============================================================================
# Share
# =============================================================================


class ShareQuerySet(models.QuerySet):
    """
    Chainable filters matching the share lifecycle states.

    All state filters start from is_active=True so bulk updates built on
    them are idempotent: a second run finds nothing left to change.
    """

    def for_owner(self, owner_id: int) -> ShareQuerySet:
        return self.filter(owner_id=owner_id)

    def active(self) -> ShareQuerySet:
        return self.filter(is_active=True)

    def expired(self, now: datetime) -> ShareQuerySet:
        """Active shares whose expiration has passed."""
        return self.filter(is_active=True, expires_at__isnull=False, expires_at__lt=now)

    def exhausted(self) -> ShareQuerySet:
        """Active shares whose access budget is used up."""
        return self.filter(
            is_active=True,
            max_access__isnull=False,
            access_count__gte=F("max_access"),
        )

    def usable(self, now: datetime) -> ShareQuerySet:
        """Shares that would currently grant access."""
        return self.filter(is_active=True).filter(
            Q(expires_at__isnull=True) | Q(expires_at__gt=now),
            Q(max_access__isnull=True) | Q(access_count__lt=F("max_access")),
        )


class Share(BaseModel):
    """
    A link granting access to exactly one file.

    Attributes:
        share_token: Unguessable, URL-safe, globally unique token. Immutable.
        owner: User who created the share (must own the file).
        file_id: Identifier of the shared file in the file store.
        permission: VIEW_ONLY or DOWNLOAD.
        expires_at: Optional expiration time.
        is_active: False once revoked, expired or exhausted. Never reset.
        access_count: Number of committed accesses.
        max_access: Optional access ceiling (null = unlimited).
        deactivated_at: When is_active flipped to False.
        deactivation_reason: Why is_active flipped to False.

    Invariants:
        access_count <= max_access whenever max_access is set
        (enforced by a check constraint as well as the access recorder).
    """

    share_token = models.CharField(
        max_length=64,
        unique=True,
        editable=False,
        help_text="Opaque URL-safe token identifying this share",
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="link_shares",
        help_text="User who created the share",
    )

    file_id = models.UUIDField(
        db_index=True,
        help_text="Identifier of the shared file",
    )

    permission = models.CharField(
        max_length=16,
        choices=SharePermission.choices,
        default=SharePermission.VIEW_ONLY,
        help_text="Access level granted by the link",
    )

    expires_at = models.DateTimeField(
        blank=True,
        null=True,
        db_index=True,
        help_text="When this share expires (null = never)",
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether the link can still be used",
    )

    access_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of committed accesses",
    )

    max_access = models.PositiveIntegerField(
        blank=True,
        null=True,
        help_text="Maximum number of accesses (null = unlimited)",
    )

    deactivated_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="When the share was deactivated",
    )

    deactivation_reason = models.CharField(
        max_length=16,
        choices=DeactivationReason.choices,
        blank=True,
        default="",
        help_text="Why the share was deactivated",
    )

    objects = ShareQuerySet.as_manager()

    class Meta:
        verbose_name = "Share"
        verbose_name_plural = "Shares"
        ordering = ["-created_at"]

        indexes = [
            models.Index(fields=["owner", "created_at"], name="share_owner_created_idx"),
            models.Index(fields=["is_active", "expires_at"], name="share_active_expires_idx"),
            models.Index(fields=["file_id", "is_active"], name="share_file_active_idx"),
        ]

        constraints = [
            models.CheckConstraint(
                condition=Q(max_access__isnull=True) | Q(max_access__gte=1),
                name="share_max_access_positive",
            ),
            models.CheckConstraint(
                condition=Q(max_access__isnull=True)
                | Q(access_count__lte=F("max_access")),
                name="share_access_count_within_limit",
            ),
        ]

    def __str__(self) -> str:
        return f"Share {self.pk} ({self.permission}) -> {self.file_id}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_share_token = instance.__dict__.get("share_token")
        return instance

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Reject any attempt to change the token of a stored share."""
        loaded = getattr(self, "_loaded_share_token", None)
        if not self._state.adding and loaded is not None and loaded != self.share_token:
            raise ValidationError(
                "Share tokens cannot be changed",
                error_code="TOKEN_IMMUTABLE",
                details={"share_id": self.pk},
            )
        super().save(*args, **kwargs)
        self._loaded_share_token = self.share_token

    # -------------------------------------------------------------------------
    # State checks. All take an explicit `now` so callers control the clock.
    # -------------------------------------------------------------------------

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    @property
    def is_exhausted(self) -> bool:
        return self.max_access is not None and self.access_count >= self.max_access

    def is_usable(self, now: datetime) -> bool:
        """True iff active, not expired and not exhausted."""
        return self.is_active and not self.is_expired(now) and not self.is_exhausted

    @property
    def remaining_accesses(self) -> int | None:
        """Access budget left, or None for unlimited shares."""
        if self.max_access is None:
            return None
        return max(self.max_access - self.access_count, 0)

    @property
    def allows_download(self) -> bool:
        return self.permission == SharePermission.DOWNLOAD

    def deactivate(self, reason: str, now: datetime) -> bool:
        """
        Flip is_active to False if it is still True.

        Uses a filtered update so that concurrent deactivations of the
        same share record only one reason.

        Returns:
            True if this call performed the transition
        """
        updated = Share.objects.filter(pk=self.pk, is_active=True).update(
            is_active=False,
            deactivated_at=now,
            deactivation_reason=reason,
            updated_at=now,
        )
        if updated:
            self.is_active = False
            self.deactivated_at = now
            self.deactivation_reason = reason
        else:
            self.refresh_from_db(
                fields=["is_active", "deactivated_at", "deactivation_reason"]
            )
        return bool(updated)


# =============================================================================
# ShareAccess
# =============================================================================


class ShareAccess(models.Model):
    """
    Immutable record of one access attempt on a share.

    Granted rows are written by the access recorder in the same
    transaction that increments Share.access_count. Denied rows
    (granted=False) are written by the policy engine when denied-attempt
    recording is enabled and never touch the counter.
    """

    share = models.ForeignKey(
        Share,
        on_delete=models.CASCADE,
        related_name="accesses",
        help_text="Share that was accessed",
    )

    accessor_ip = models.CharField(
        max_length=45,
        blank=True,
        default="",
        help_text="Client IP address (IPv4 or IPv6)",
    )

    user_agent = models.CharField(
        max_length=512,
        blank=True,
        default="",
        help_text="Client User-Agent header",
    )

    accessed_at = models.DateTimeField(
        db_index=True,
        help_text="When the access happened",
    )

    access_type = models.CharField(
        max_length=16,
        choices=AccessType.choices,
        help_text="Whether content was viewed or downloaded",
    )

    granted = models.BooleanField(
        default=True,
        help_text="False for logged denied attempts",
    )

    denial_reason = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Precise denial reason for denied attempts",
    )

    class Meta:
        verbose_name = "Share Access"
        verbose_name_plural = "Share Accesses"
        ordering = ["-accessed_at"]

        indexes = [
            models.Index(fields=["share", "accessed_at"], name="shareaccess_share_at_idx"),
            models.Index(fields=["accessor_ip", "accessed_at"], name="shareaccess_ip_at_idx"),
        ]

    def __str__(self) -> str:
        outcome = "granted" if self.granted else f"denied:{self.denial_reason}"
        return f"{self.access_type} on share {self.share_id} ({outcome})"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError(
                "Access records are append-only",
                error_code="ACCESS_RECORD_IMMUTABLE",
                details={"access_id": self.pk},
            )
        super().save(*args, **kwargs)


# =============================================================================
# ShareNotification
# =============================================================================


class ShareNotification(models.Model):
    """
    One email notification about a share to one recipient.

    notification_id is generated before the first send attempt and kept
    across retries, so a retried message can be correlated with the
    original. delivered only ever moves from False to True.
    """

    share = models.ForeignKey(
        Share,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="Share the notification is about",
    )

    recipient_email = models.CharField(
        max_length=254,
        db_index=True,
        help_text="Recipient email address as supplied by the owner",
    )

    notification_id = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
        help_text="Stable identifier used for tracking and retries",
    )

    sent_at = models.DateTimeField(
        db_index=True,
        help_text="When the first delivery attempt was made",
    )

    delivered = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the mail sender accepted the message",
    )

    delivered_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="When delivery was confirmed",
    )

    attempt_count = models.PositiveIntegerField(
        default=1,
        help_text="Number of delivery attempts",
    )

    last_attempt_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="When the most recent delivery attempt was made",
    )

    last_error = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Reason the last attempt failed",
    )

    class Meta:
        verbose_name = "Share Notification"
        verbose_name_plural = "Share Notifications"
        ordering = ["-sent_at"]

        indexes = [
            models.Index(fields=["share", "sent_at"], name="sharenotif_share_sent_idx"),
            models.Index(fields=["delivered", "sent_at"], name="sharenotif_delivered_idx"),
        ]

    def __str__(self) -> str:
        status = "delivered" if self.delivered else "pending"
        return f"Notification {self.notification_id} to {self.recipient_email} ({status})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_delivered = instance.__dict__.get("delivered")
        return instance

    def save(self, *args: Any, **kwargs: Any) -> None:
        if getattr(self, "_loaded_delivered", False) and not self.delivered:
            raise ValidationError(
                "A delivered notification cannot be marked undelivered",
                error_code="DELIVERY_IRREVERSIBLE",
                details={"notification_id": str(self.notification_id)},
            )
        super().save(*args, **kwargs)
        self._loaded_delivered = self.delivered
