"""
Celery tasks for share links.

This module provides async tasks for:
- Sending recipient notifications after a share is created
- Periodic sweeps of expired and exhausted shares
- Access log retention cleanup
- Usage analytics and suspicious-activity reports
- Retrying undelivered notifications

Schedules are stored in django-celery-beat (see migration
0002_add_celery_beat_schedules). Every task is idempotent, so beat
overlaps and manual re-runs are harmless.

Usage:
    from sharing.tasks import send_share_notifications, run_share_maintenance

    send_share_notifications.delay(share.id, ["friend@example.com"])
    run_share_maintenance.delay()
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import timedelta

from celery import shared_task

from core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

MAX_TASK_RETRIES = 3
SUSPICIOUS_WINDOW_HOURS = 24


# =============================================================================
# Notification Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(TransientStoreError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_TASK_RETRIES},
)
def send_share_notifications(self, share_id: int, recipient_emails: list[str]) -> dict:
    """
    Notify recipients about a newly created share.

    Args:
        share_id: Share to announce
        recipient_emails: Addresses supplied by the owner

    Returns:
        Dict with delivered/failed counts, or an error key when the
        share cannot be notified about.
    """
    from sharing.services import ShareService

    result = ShareService().notify(share_id, recipient_emails)
    if not result:
        logger.warning(
            f"Skipped notifications for share {share_id}: {result.error}",
            extra={"share_id": share_id, "error_code": result.error_code},
        )
        return {"share_id": share_id, "error": result.error_code}

    delivered = sum(1 for r in result.data if r.delivered)
    return {
        "share_id": share_id,
        "delivered": delivered,
        "failed": len(result.data) - delivered,
    }


@shared_task(autoretry_for=(TransientStoreError,), retry_backoff=True)
def retry_failed_share_notifications(max_age_hours: int | None = None) -> dict:
    """
    Periodic task to retry undelivered notifications inside the retry window.

    Returns:
        Dict with retried and delivered counts.
    """
    from sharing.services import NotificationDispatcher

    max_age = timedelta(hours=max_age_hours) if max_age_hours else None
    results = NotificationDispatcher().retry_failed(max_age)
    return {
        "retried": len(results),
        "delivered": sum(1 for r in results if r.delivered),
    }


# =============================================================================
# Maintenance Tasks
# =============================================================================


@shared_task(autoretry_for=(TransientStoreError,), retry_backoff=True)
def sweep_expired_shares() -> dict:
    """Periodic task to deactivate shares past their expiration."""
    from sharing.services import MaintenanceService

    return {"deactivated": MaintenanceService().sweep_expired()}


@shared_task(autoretry_for=(TransientStoreError,), retry_backoff=True)
def sweep_exhausted_shares() -> dict:
    """Periodic task to deactivate shares with no access budget left."""
    from sharing.services import MaintenanceService

    return {"deactivated": MaintenanceService().sweep_exhausted()}


@shared_task(autoretry_for=(TransientStoreError,), retry_backoff=True)
def cleanup_share_logs(retention_days: int | None = None) -> dict:
    """
    Periodic task to delete old access logs and failed notifications.

    Args:
        retention_days: Override for the access log retention window
    """
    from sharing.services import MaintenanceService

    result = MaintenanceService().cleanup_logs(retention_days=retention_days)
    return {
        "access_logs_deleted": result.access_logs_deleted,
        "notifications_deleted": result.notifications_deleted,
    }


@shared_task
def generate_share_analytics() -> dict:
    """
    Periodic task to compute usage analytics and log the summary line.

    Returns:
        Analytics snapshot as a JSON-serializable dict.
    """
    from sharing.services import MaintenanceService

    service = MaintenanceService()
    analytics = service.generate_analytics()
    service.log_summary(analytics)

    data = analytics.to_dict()
    data["generated_at"] = analytics.generated_at.isoformat()
    return data


@shared_task
def detect_suspicious_share_activity(
    window_hours: int = SUSPICIOUS_WINDOW_HOURS,
    threshold: int | None = None,
) -> dict:
    """
    Periodic task to log IPs with abnormal access volume.

    Reporting only; no blocking happens here.
    """
    from sharing.services import MaintenanceService

    service = MaintenanceService()
    threshold = threshold or service.config.suspicious_access_threshold
    flagged = service.detect_suspicious(timedelta(hours=window_hours), threshold)
    for activity in flagged:
        logging.getLogger("sharing.security").warning(
            f"Suspicious share access volume from {activity.ip}: "
            f"{activity.access_count} in {window_hours}h",
            extra={"accessor_ip": activity.ip, "access_count": activity.access_count},
        )
    return {
        "flagged": [
            {**asdict(a), "first_seen": a.first_seen.isoformat(), "last_seen": a.last_seen.isoformat()}
            for a in flagged
        ]
    }


@shared_task
def run_share_maintenance() -> dict:
    """
    Run every maintenance step; failures are reported, not raised.

    Returns:
        Dict with per-step counts and an errors mapping.
    """
    from sharing.services import MaintenanceService

    report = MaintenanceService().run_all()
    return {
        "expired_deactivated": report.expired_deactivated,
        "exhausted_deactivated": report.exhausted_deactivated,
        "access_logs_deleted": report.cleanup.access_logs_deleted if report.cleanup else None,
        "notifications_deleted": (
            report.cleanup.notifications_deleted if report.cleanup else None
        ),
        "health": report.analytics.health.value if report.analytics else None,
        "errors": report.errors,
    }
