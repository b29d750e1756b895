"""
Notification dispatcher for share links.

Sends email notifications to share recipients and tracks each attempt
as a ShareNotification row. Every recipient is handled independently:
an invalid address or a failed send is recorded on that recipient's
row and the loop moves on.

Retry model:
    Undelivered notifications younger than the retry window are retried
    under their original notification_id. Older ones are treated as
    permanently failed and are eventually removed by maintenance.
"""

from __future__ import annotations

import smtplib
from datetime import timezone as dt_timezone
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import DatabaseError

from core.clock import SystemClock
from core.decorators import translate_store_errors
from core.exceptions import ExternalServiceError, ValidationError
from core.helpers import format_file_size
from core.services import BaseService
from media.services.file_store import MediaFileStore
from sharing.config import SharingConfig
from sharing.links import build_share_url
from sharing.models import Share, ShareNotification, SharePermission
from sharing.validators import normalize_email
from toolkit.services.email import EmailService

if TYPE_CHECKING:
    import uuid
    from datetime import datetime, timedelta

    from core.protocols import Clock
    from toolkit.protocols import EmailSender, FileStore

# Errors a mail collaborator may raise instead of returning False
SEND_ERRORS = (ExternalServiceError, smtplib.SMTPException, OSError)


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of one delivery attempt to one recipient."""

    recipient_email: str
    notification_id: uuid.UUID
    delivered: bool
    error: str = ""


@dataclass(frozen=True)
class NotificationStats:
    total: int
    delivered: int
    failed: int

    @property
    def delivery_rate(self) -> float:
        """Percentage of notifications delivered (0.0 when none sent)."""
        if not self.total:
            return 0.0
        return round(self.delivered * 100.0 / self.total, 1)


@dataclass(frozen=True)
class ShareMessage:
    subject: str
    body: str


class NotificationDispatcher(BaseService):
    """
    Send and track share notification emails.

    Args:
        email_sender: Mail collaborator (EmailSender protocol)
        file_store: File store used for the file name and size in messages
        config: Sharing configuration (public base URL, retry window)
        clock: Time source

    Usage:
        dispatcher = NotificationDispatcher()
        results = dispatcher.notify(share, ["a@example.com", "b@example.com"])
        failed = [r for r in results if not r.delivered]
    """

    def __init__(
        self,
        email_sender: EmailSender | None = None,
        file_store: FileStore | None = None,
        config: SharingConfig | None = None,
        clock: Clock | None = None,
    ):
        self.email_sender = email_sender or EmailService()
        self.file_store = file_store or MediaFileStore()
        self.config = config or SharingConfig.from_settings()
        self.clock = clock or SystemClock()

    # =========================================================================
    # Sending
    # =========================================================================

    @translate_store_errors
    def notify(self, share: Share, recipient_emails: list[str]) -> list[NotificationResult]:
        """
        Notify each recipient about `share`.

        Duplicate addresses (case-insensitive) are notified once.

        Returns:
            One NotificationResult per distinct recipient, in input order
        """
        results: list[NotificationResult] = []
        seen: set[str] = set()

        for raw_email in recipient_emails:
            key = (raw_email or "").strip().lower()
            if key in seen:
                continue
            seen.add(key)
            results.append(self._notify_one(share, raw_email))

        delivered = sum(1 for r in results if r.delivered)
        self.get_logger().info(
            f"Share {share.pk} notifications: {delivered}/{len(results)} delivered",
            extra={
                "share_id": share.pk,
                "delivered": delivered,
                "failed": len(results) - delivered,
            },
        )
        return results

    def _notify_one(self, share: Share, raw_email: str) -> NotificationResult:
        now = self.clock.now()
        notification = ShareNotification.objects.create(
            share=share,
            recipient_email=(raw_email or "").strip()[:254],
            sent_at=now,
            last_attempt_at=now,
            delivered=False,
        )
        return self._attempt(share, notification)

    @translate_store_errors
    def retry(self, notification: ShareNotification) -> NotificationResult:
        """Re-send an undelivered notification under its original id."""
        if notification.delivered:
            return NotificationResult(
                recipient_email=notification.recipient_email,
                notification_id=notification.notification_id,
                delivered=True,
            )
        notification.attempt_count += 1
        notification.last_attempt_at = self.clock.now()
        notification.save(update_fields=["attempt_count", "last_attempt_at"])
        share = Share.objects.get(pk=notification.share_id)
        return self._attempt(share, notification)

    def _attempt(self, share: Share, notification: ShareNotification) -> NotificationResult:
        try:
            email = normalize_email(notification.recipient_email)
        except ValidationError as e:
            return self._mark_failed(notification, e.message)

        try:
            message = self.build_share_message(share, notification.notification_id)
            sent = self.email_sender.send(email, message.subject, message.body)
        except DatabaseError:
            raise
        except SEND_ERRORS as e:
            self.get_logger().warning(
                f"Mail sender raised for notification {notification.notification_id}: {e}",
                extra={"share_id": share.pk, "notification_id": str(notification.notification_id)},
            )
            return self._mark_failed(notification, str(e) or e.__class__.__name__)
        except Exception as e:
            # Unknown provider errors fail this recipient only
            self.get_logger().exception(
                f"Unexpected mail failure for notification {notification.notification_id}",
                extra={"share_id": share.pk, "notification_id": str(notification.notification_id)},
            )
            return self._mark_failed(notification, f"{e.__class__.__name__}: {e}")

        if not sent:
            return self._mark_failed(notification, "Mail sender reported failure")
        return self._mark_delivered(notification)

    def _mark_delivered(self, notification: ShareNotification) -> NotificationResult:
        notification.delivered = True
        notification.delivered_at = self.clock.now()
        notification.last_error = ""
        notification.save(update_fields=["delivered", "delivered_at", "last_error"])
        return NotificationResult(
            recipient_email=notification.recipient_email,
            notification_id=notification.notification_id,
            delivered=True,
        )

    def _mark_failed(self, notification: ShareNotification, error: str) -> NotificationResult:
        notification.last_error = error[:255]
        notification.save(update_fields=["last_error"])
        self.get_logger().warning(
            f"Notification {notification.notification_id} not delivered: {error}",
            extra={
                "share_id": notification.share_id,
                "notification_id": str(notification.notification_id),
                "attempt": notification.attempt_count,
            },
        )
        return NotificationResult(
            recipient_email=notification.recipient_email,
            notification_id=notification.notification_id,
            delivered=False,
            error=notification.last_error,
        )

    # =========================================================================
    # Retry
    # =========================================================================

    @translate_store_errors
    def find_retryable(self, max_age: timedelta) -> list[ShareNotification]:
        """
        Undelivered notifications first sent within `max_age`.

        Older undelivered notifications are considered permanently failed.
        """
        cutoff = self.clock.now() - max_age
        return list(
            ShareNotification.objects.filter(delivered=False, sent_at__gte=cutoff)
            .order_by("sent_at")
        )

    def retry_failed(self, max_age: timedelta | None = None) -> list[NotificationResult]:
        """
        Retry every retryable notification whose share is still usable.

        Args:
            max_age: Retry window (defaults to the configured window)
        """
        max_age = max_age or self.config.notification_retry_window
        now = self.clock.now()
        usable_share_ids = set(Share.objects.usable(now).values_list("pk", flat=True))

        results = []
        for notification in self.find_retryable(max_age):
            if notification.share_id not in usable_share_ids:
                continue
            results.append(self.retry(notification))

        self.get_logger().info(
            f"Retried {len(results)} share notifications",
            extra={"retried": len(results), "delivered": sum(r.delivered for r in results)},
        )
        return results

    # =========================================================================
    # Revocation notices
    # =========================================================================

    @translate_store_errors
    def notify_revoked(self, share: Share) -> int:
        """
        Tell every previously notified recipient that access was revoked.

        These notices are not tracked as ShareNotification rows.

        Returns:
            Number of recipients the mail sender accepted
        """
        recipients = (
            ShareNotification.objects.filter(share=share, delivered=True)
            .order_by("recipient_email")
            .values_list("recipient_email", flat=True)
            .distinct()
        )
        filename = self._file_label(share)[0]
        subject = f"File share access revoked: {filename}"
        body = (
            f"Access to the shared file \"{filename}\" has been revoked by its owner.\n"
            "The link you received no longer works."
        )

        sent = 0
        for email in recipients:
            try:
                if self.email_sender.send(email, subject, body):
                    sent += 1
            except DatabaseError:
                raise
            except Exception as e:
                self.get_logger().warning(
                    f"Revocation notice to {email} failed: {e}",
                    extra={"share_id": share.pk},
                )
        return sent

    # =========================================================================
    # Reporting
    # =========================================================================

    @translate_store_errors
    def get_stats(self, share: Share) -> NotificationStats:
        rows = ShareNotification.objects.filter(share=share)
        total = rows.count()
        delivered = rows.filter(delivered=True).count()
        return NotificationStats(total=total, delivered=delivered, failed=total - delivered)

    @translate_store_errors
    def get_history(self, share: Share) -> list[ShareNotification]:
        return list(ShareNotification.objects.filter(share=share).order_by("-sent_at"))

    # =========================================================================
    # Message rendering
    # =========================================================================

    def build_share_message(self, share: Share, notification_id: uuid.UUID) -> ShareMessage:
        """Subject and plain-text body for a share notification."""
        owner = get_user_model().objects.filter(pk=share.owner_id).first()
        owner_name = owner.get_username() if owner is not None else "Someone"
        filename, size_label = self._file_label(share)
        permission_text = (
            "view and download"
            if share.permission == SharePermission.DOWNLOAD
            else "view only"
        )

        lines = [
            "Hello,",
            "",
            f"{owner_name} has shared a file with you.",
            "",
            f"File: {filename} ({size_label})",
            f"Permission: {permission_text}",
        ]
        if share.expires_at is not None:
            lines.append(f"Expires: {self._format_time(share.expires_at)}")
        if share.max_access is not None:
            lines.append(f"Access limit: {share.max_access}")
        lines += [
            "",
            f"Open the file: {build_share_url(share, self.config)}",
            "",
            f"Notification ID: {notification_id}",
        ]
        return ShareMessage(
            subject=f"{owner_name} shared a file with you: {filename}",
            body="\n".join(lines),
        )

    def _file_label(self, share: Share) -> tuple[str, str]:
        metadata = self.file_store.get_file_metadata(share.file_id)
        if metadata is None:
            return "a file", "unknown size"
        return metadata.filename, format_file_size(metadata.size)

    @staticmethod
    def _format_time(value: datetime) -> str:
        return value.astimezone(dt_timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
