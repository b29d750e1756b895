"""
Explicit configuration for the sharing services.

Settings are read once from django.conf.settings (populated by
django-environ in config/settings.py) and passed to services at
construction. Tests build SharingConfig directly.

Usage:
    from sharing.config import SharingConfig

    config = SharingConfig.from_settings()
    engine = SharePolicyEngine(config=config)

    # Tests
    config = SharingConfig(record_denied_access=False)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings


@dataclass(frozen=True)
class SharingConfig:
    """
    Retention windows, thresholds and policy switches for share links.

    Attributes:
        public_base_url: Origin used when building share URLs for emails
        access_log_retention_days: Age after which ShareAccess rows are deleted
        notification_retention_days: Age after which undelivered
            notifications are deleted as permanently failed
        notification_retry_hours: Undelivered notifications younger than
            this are retried
        record_denied_access: Persist denied attempts as ShareAccess rows
        suspicious_access_threshold: Accesses per IP per 24h that flag it
        max_query_time_ms: Analytics query time above this degrades health
        critical_query_time_ms: Analytics query time above this is critical
        max_suspicious_ips: More flagged IPs than this degrades health
        critical_suspicious_ips: More flagged IPs than this is critical
        max_daily_accesses: More accesses per 24h than this degrades health
    """

    public_base_url: str = "http://localhost:8000"
    access_log_retention_days: int = 90
    notification_retention_days: int = 30
    notification_retry_hours: int = 24
    record_denied_access: bool = True
    suspicious_access_threshold: int = 50
    max_query_time_ms: int = 1000
    critical_query_time_ms: int = 5000
    max_suspicious_ips: int = 5
    critical_suspicious_ips: int = 20
    max_daily_accesses: int = 10000

    @classmethod
    def from_settings(cls) -> SharingConfig:
        defaults = cls()
        return cls(
            public_base_url=getattr(
                settings, "SHARING_PUBLIC_BASE_URL", defaults.public_base_url
            ).rstrip("/"),
            access_log_retention_days=getattr(
                settings,
                "SHARING_ACCESS_LOG_RETENTION_DAYS",
                defaults.access_log_retention_days,
            ),
            notification_retention_days=getattr(
                settings,
                "SHARING_NOTIFICATION_RETENTION_DAYS",
                defaults.notification_retention_days,
            ),
            notification_retry_hours=getattr(
                settings,
                "SHARING_NOTIFICATION_RETRY_HOURS",
                defaults.notification_retry_hours,
            ),
            record_denied_access=getattr(
                settings, "SHARING_RECORD_DENIED_ACCESS", defaults.record_denied_access
            ),
            suspicious_access_threshold=getattr(
                settings,
                "SHARING_SUSPICIOUS_ACCESS_THRESHOLD",
                defaults.suspicious_access_threshold,
            ),
            max_query_time_ms=getattr(
                settings, "SHARING_MAX_QUERY_TIME_MS", defaults.max_query_time_ms
            ),
            critical_query_time_ms=getattr(
                settings,
                "SHARING_CRITICAL_QUERY_TIME_MS",
                defaults.critical_query_time_ms,
            ),
            max_suspicious_ips=getattr(
                settings, "SHARING_MAX_SUSPICIOUS_IPS", defaults.max_suspicious_ips
            ),
            critical_suspicious_ips=getattr(
                settings,
                "SHARING_CRITICAL_SUSPICIOUS_IPS",
                defaults.critical_suspicious_ips,
            ),
            max_daily_accesses=getattr(
                settings, "SHARING_MAX_DAILY_ACCESSES", defaults.max_daily_accesses
            ),
        )

    @property
    def access_log_retention(self) -> timedelta:
        return timedelta(days=self.access_log_retention_days)

    @property
    def notification_retention(self) -> timedelta:
        return timedelta(days=self.notification_retention_days)

    @property
    def notification_retry_window(self) -> timedelta:
        return timedelta(hours=self.notification_retry_hours)
