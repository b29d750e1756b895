"""
Sharing services package.

Exports:
    SharePolicyEngine, AccessDecision, DenialReason: token evaluation
    AccessRecorder: committing granted accesses
    NotificationDispatcher, NotificationResult: recipient emails
    MaintenanceService, UsageAnalytics, HealthStatus: sweeps and analytics
    ShareService: owner-facing share management
"""

from sharing.services.maintenance import (
    CleanupResult,
    HealthStatus,
    MaintenanceReport,
    MaintenanceService,
    SuspiciousActivity,
    UsageAnalytics,
)
from sharing.services.notifications import (
    NotificationDispatcher,
    NotificationResult,
    NotificationStats,
)
from sharing.services.policy import AccessDecision, DenialReason, SharePolicyEngine
from sharing.services.recorder import AccessRecorder
from sharing.services.shares import FileSharingStats, ShareAnalyticsSummary, ShareService

__all__ = [
    "AccessDecision",
    "AccessRecorder",
    "CleanupResult",
    "DenialReason",
    "FileSharingStats",
    "HealthStatus",
    "MaintenanceReport",
    "MaintenanceService",
    "NotificationDispatcher",
    "NotificationResult",
    "NotificationStats",
    "SharePolicyEngine",
    "ShareAnalyticsSummary",
    "ShareService",
    "SuspiciousActivity",
    "UsageAnalytics",
]
