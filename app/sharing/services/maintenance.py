"""
Share maintenance and usage analytics.

Each operation is independently invocable (Celery beat, staff endpoint
or shell):

    sweep_expired()      deactivate active shares past expiration
    sweep_exhausted()    deactivate active shares with no access budget left
    cleanup_logs()       hard-delete old access rows and failed notifications
    detect_suspicious()  report IPs with unusually many accesses
    generate_analytics() aggregate counts plus a health classification
    run_all()            every step above, isolated from each other

Sweeps filter on is_active=True, so re-running or overlapping them with
live traffic is safe: a second run affects nothing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from django.db.models import Count, F, Max, Min, Q

from core.clock import SystemClock
from core.decorators import translate_store_errors
from core.exceptions import ValidationError
from core.services import BaseService
from sharing.config import SharingConfig
from sharing.models import (
    AccessType,
    DeactivationReason,
    Share,
    ShareAccess,
    ShareNotification,
)

if TYPE_CHECKING:
    from datetime import datetime

    from core.protocols import Clock

logger = logging.getLogger(__name__)

ANALYTICS_WINDOW_DAY = timedelta(hours=24)
ANALYTICS_WINDOW_WEEK = timedelta(days=7)


class HealthStatus(str, Enum):
    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class CleanupResult:
    access_logs_deleted: int
    notifications_deleted: int
    access_cutoff: datetime
    notification_cutoff: datetime


@dataclass(frozen=True)
class SuspiciousActivity:
    """An IP whose access count within the window met the threshold."""

    ip: str
    access_count: int
    first_seen: datetime
    last_seen: datetime


@dataclass
class UsageAnalytics:
    """
    Point-in-time usage snapshot.

    Access counts include granted accesses only. expired_shares and
    exhausted_shares count shares still flagged active that a sweep
    would deactivate.
    """

    generated_at: datetime
    total_shares: int
    active_shares: int
    expired_shares: int
    exhausted_shares: int
    accesses_24h: int
    views_24h: int
    downloads_24h: int
    accesses_7d: int
    views_7d: int
    downloads_7d: int
    suspicious_ip_count: int
    query_time_ms: int
    health: HealthStatus = HealthStatus.HEALTHY
    issues: list[str] = field(default_factory=list)

    @property
    def active_share_percentage(self) -> float:
        if not self.total_shares:
            return 0.0
        return round(self.active_shares * 100.0 / self.total_shares, 1)

    @property
    def download_rate_24h(self) -> float:
        if not self.accesses_24h:
            return 0.0
        return round(self.downloads_24h * 100.0 / self.accesses_24h, 1)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["health"] = self.health.value
        data["active_share_percentage"] = self.active_share_percentage
        data["download_rate_24h"] = self.download_rate_24h
        return data


@dataclass
class MaintenanceReport:
    """Partial-result report of run_all(). Failed steps are listed in errors."""

    expired_deactivated: int | None = None
    exhausted_deactivated: int | None = None
    cleanup: CleanupResult | None = None
    analytics: UsageAnalytics | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class MaintenanceService(BaseService):
    """
    Sweeps, retention cleanup, suspicious-activity detection and analytics.

    Args:
        config: Retention windows and health thresholds
        clock: Time source
        timer: Monotonic timer used to measure analytics query time

    Usage:
        service = MaintenanceService()
        service.sweep_expired()          # -> 3
        service.sweep_expired()          # -> 0
        report = service.detect_suspicious(timedelta(hours=1), threshold=20)
    """

    def __init__(
        self,
        config: SharingConfig | None = None,
        clock: Clock | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.config = config or SharingConfig.from_settings()
        self.clock = clock or SystemClock()
        self.timer = timer

    # =========================================================================
    # Sweeps
    # =========================================================================

    @translate_store_errors
    def sweep_expired(self) -> int:
        """Deactivate active shares whose expiration has passed."""
        now = self.clock.now()
        count = Share.objects.expired(now).update(
            is_active=False,
            deactivated_at=now,
            deactivation_reason=DeactivationReason.EXPIRED,
            updated_at=now,
        )
        if count:
            logger.info(f"Deactivated {count} expired shares", extra={"count": count})
        return count

    @translate_store_errors
    def sweep_exhausted(self) -> int:
        """Deactivate active shares whose access_count reached max_access."""
        now = self.clock.now()
        count = Share.objects.exhausted().update(
            is_active=False,
            deactivated_at=now,
            deactivation_reason=DeactivationReason.EXHAUSTED,
            updated_at=now,
        )
        if count:
            logger.info(f"Deactivated {count} exhausted shares", extra={"count": count})
        return count

    # =========================================================================
    # Retention
    # =========================================================================

    @translate_store_errors
    def cleanup_logs(
        self,
        retention_days: int | None = None,
        notification_retention_days: int | None = None,
    ) -> CleanupResult:
        """
        Hard-delete old audit rows.

        Args:
            retention_days: ShareAccess rows older than this are deleted
                (default: configured access log retention, 90 days)
            notification_retention_days: Undelivered notifications older
                than this are deleted (default: 30 days)

        Raises:
            ValidationError: If a retention window is not positive
        """
        if retention_days is None:
            retention_days = self.config.access_log_retention_days
        if notification_retention_days is None:
            notification_retention_days = self.config.notification_retention_days
        for name, value in (
            ("retention_days", retention_days),
            ("notification_retention_days", notification_retention_days),
        ):
            if value < 1:
                raise ValidationError(
                    f"{name} must be at least 1",
                    error_code="INVALID_RETENTION",
                    details={name: value},
                )

        now = self.clock.now()
        access_cutoff = now - timedelta(days=retention_days)
        notification_cutoff = now - timedelta(days=notification_retention_days)

        with self.atomic():
            access_deleted, _ = ShareAccess.objects.filter(
                accessed_at__lt=access_cutoff
            ).delete()
            notifications_deleted, _ = ShareNotification.objects.filter(
                delivered=False,
                sent_at__lt=notification_cutoff,
            ).delete()

        logger.info(
            f"Share log cleanup removed {access_deleted} access rows and "
            f"{notifications_deleted} failed notifications",
            extra={
                "access_logs_deleted": access_deleted,
                "notifications_deleted": notifications_deleted,
            },
        )
        return CleanupResult(
            access_logs_deleted=access_deleted,
            notifications_deleted=notifications_deleted,
            access_cutoff=access_cutoff,
            notification_cutoff=notification_cutoff,
        )

    # =========================================================================
    # Analysis
    # =========================================================================

    @translate_store_errors
    def detect_suspicious(self, window: timedelta, threshold: int) -> list[SuspiciousActivity]:
        """
        IPs with at least `threshold` access attempts within `window`.

        Counts granted and logged denied attempts alike. Read-only.

        Returns:
            Flagged IPs, highest count first
        """
        if threshold < 1:
            raise ValidationError(
                "threshold must be at least 1",
                error_code="INVALID_THRESHOLD",
                details={"threshold": threshold},
            )
        since = self.clock.now() - window
        rows = (
            ShareAccess.objects.filter(accessed_at__gte=since)
            .exclude(accessor_ip="")
            .values("accessor_ip")
            .annotate(
                access_count=Count("id"),
                first_seen=Min("accessed_at"),
                last_seen=Max("accessed_at"),
            )
            .filter(access_count__gte=threshold)
            .order_by("-access_count", "accessor_ip")
        )
        return [
            SuspiciousActivity(
                ip=row["accessor_ip"],
                access_count=row["access_count"],
                first_seen=row["first_seen"],
                last_seen=row["last_seen"],
            )
            for row in rows
        ]

    @translate_store_errors
    def generate_analytics(self) -> UsageAnalytics:
        """Aggregate share and access counts and classify system health."""
        now = self.clock.now()
        day_ago = now - ANALYTICS_WINDOW_DAY
        week_ago = now - ANALYTICS_WINDOW_WEEK

        started = self.timer()
        shares = Share.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            expired=Count("id", filter=Q(is_active=True, expires_at__lt=now)),
            exhausted=Count(
                "id",
                filter=Q(
                    is_active=True,
                    max_access__isnull=False,
                    access_count__gte=F("max_access"),
                ),
            ),
        )
        recent = Q(accessed_at__gte=day_ago)
        accesses = ShareAccess.objects.filter(granted=True, accessed_at__gte=week_ago).aggregate(
            week=Count("id"),
            week_views=Count("id", filter=Q(access_type=AccessType.VIEW)),
            week_downloads=Count("id", filter=Q(access_type=AccessType.DOWNLOAD)),
            day=Count("id", filter=recent),
            day_views=Count("id", filter=recent & Q(access_type=AccessType.VIEW)),
            day_downloads=Count("id", filter=recent & Q(access_type=AccessType.DOWNLOAD)),
        )
        suspicious = self.detect_suspicious(
            ANALYTICS_WINDOW_DAY, self.config.suspicious_access_threshold
        )
        query_time_ms = int((self.timer() - started) * 1000)

        analytics = UsageAnalytics(
            generated_at=now,
            total_shares=shares["total"],
            active_shares=shares["active"],
            expired_shares=shares["expired"],
            exhausted_shares=shares["exhausted"],
            accesses_24h=accesses["day"],
            views_24h=accesses["day_views"],
            downloads_24h=accesses["day_downloads"],
            accesses_7d=accesses["week"],
            views_7d=accesses["week_views"],
            downloads_7d=accesses["week_downloads"],
            suspicious_ip_count=len(suspicious),
            query_time_ms=query_time_ms,
        )
        analytics.health, analytics.issues = self.classify_health(
            query_time_ms=analytics.query_time_ms,
            suspicious_ip_count=analytics.suspicious_ip_count,
            accesses_24h=analytics.accesses_24h,
        )
        return analytics

    def classify_health(
        self,
        query_time_ms: int,
        suspicious_ip_count: int,
        accesses_24h: int,
    ) -> tuple[HealthStatus, list[str]]:
        """
        Map metrics to a health status.

        HEALTHY when every threshold passes, CRITICAL when query time or
        suspicious IP count crosses its critical limit, DEGRADED otherwise.
        """
        config = self.config
        issues = []
        if query_time_ms > config.max_query_time_ms:
            issues.append(f"Slow analytics queries: {query_time_ms}ms")
        if suspicious_ip_count > config.max_suspicious_ips:
            issues.append(f"High suspicious IP count: {suspicious_ip_count}")
        if accesses_24h > config.max_daily_accesses:
            issues.append(f"High access volume: {accesses_24h} accesses in 24h")

        if not issues:
            return HealthStatus.HEALTHY, issues
        if (
            query_time_ms > config.critical_query_time_ms
            or suspicious_ip_count > config.critical_suspicious_ips
        ):
            return HealthStatus.CRITICAL, issues
        return HealthStatus.DEGRADED, issues

    def log_summary(self, analytics: UsageAnalytics) -> None:
        level = logging.INFO if analytics.health == HealthStatus.HEALTHY else logging.WARNING
        logger.log(
            level,
            "Share analytics summary: total=%d active=%d (%.1f%%) "
            "accesses_24h=%d (%.1f%% downloads) health=%s",
            analytics.total_shares,
            analytics.active_shares,
            analytics.active_share_percentage,
            analytics.accesses_24h,
            analytics.download_rate_24h,
            analytics.health.value,
            extra={"issues": analytics.issues},
        )

    # =========================================================================
    # Orchestration
    # =========================================================================

    def run_all(self) -> MaintenanceReport:
        """
        Run every maintenance step; a failing step does not stop the rest.

        Returns:
            MaintenanceReport with per-step results and errors by step name
        """
        report = MaintenanceReport()
        steps: list[tuple[str, Callable[[], Any], str]] = [
            ("sweep_expired", self.sweep_expired, "expired_deactivated"),
            ("sweep_exhausted", self.sweep_exhausted, "exhausted_deactivated"),
            ("cleanup_logs", self.cleanup_logs, "cleanup"),
            ("generate_analytics", self.generate_analytics, "analytics"),
        ]
        for name, step, attribute in steps:
            try:
                setattr(report, attribute, step())
            except Exception as e:
                logger.exception(f"Share maintenance step {name} failed")
                report.errors[name] = str(e)

        if report.analytics is not None:
            self.log_summary(report.analytics)
        return report
