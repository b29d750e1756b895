"""
Add Celery Beat schedules for share link maintenance.

This migration creates periodic task schedules for:
- Lifecycle sweeps (expired and exhausted shares)
- Notification retries
- Usage analytics and suspicious-activity reports
- Access log retention cleanup
"""

from django.db import migrations

TASK_NAMES = [
    "Sharing: Sweep Expired Shares",
    "Sharing: Sweep Exhausted Shares",
    "Sharing: Retry Failed Notifications",
    "Sharing: Generate Usage Analytics",
    "Sharing: Detect Suspicious Activity",
    "Sharing: Cleanup Access Logs",
]


def create_periodic_tasks(apps, schema_editor):
    """Create periodic tasks for share maintenance."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # =========================================================================
    # Schedules
    # =========================================================================

    schedule_1hour, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    schedule_2hours, _ = IntervalSchedule.objects.get_or_create(
        every=2,
        period="hours",
    )

    schedule_4hours, _ = IntervalSchedule.objects.get_or_create(
        every=4,
        period="hours",
    )

    schedule_6hours, _ = IntervalSchedule.objects.get_or_create(
        every=6,
        period="hours",
    )

    # Daily at 2 AM UTC
    crontab_daily_2am, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="2",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    # =========================================================================
    # Periodic Tasks - Lifecycle
    # =========================================================================

    PeriodicTask.objects.get_or_create(
        name="Sharing: Sweep Expired Shares",
        defaults={
            "task": "sharing.tasks.sweep_expired_shares",
            "interval": schedule_2hours,
            "enabled": True,
            "description": "Deactivates active shares whose expiration has passed.",
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Sharing: Sweep Exhausted Shares",
        defaults={
            "task": "sharing.tasks.sweep_exhausted_shares",
            "interval": schedule_2hours,
            "enabled": True,
            "description": "Deactivates active shares that reached their access limit.",
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Sharing: Retry Failed Notifications",
        defaults={
            "task": "sharing.tasks.retry_failed_share_notifications",
            "interval": schedule_1hour,
            "enabled": True,
            "description": (
                "Re-sends undelivered share notifications still inside the "
                "retry window, keeping their notification ids."
            ),
        },
    )

    # =========================================================================
    # Periodic Tasks - Reporting
    # =========================================================================

    PeriodicTask.objects.get_or_create(
        name="Sharing: Generate Usage Analytics",
        defaults={
            "task": "sharing.tasks.generate_share_analytics",
            "interval": schedule_4hours,
            "enabled": True,
            "description": "Computes share usage analytics and logs a health summary.",
        },
    )

    PeriodicTask.objects.get_or_create(
        name="Sharing: Detect Suspicious Activity",
        defaults={
            "task": "sharing.tasks.detect_suspicious_share_activity",
            "interval": schedule_6hours,
            "enabled": True,
            "description": "Logs accessor IPs with abnormal access volume.",
        },
    )

    # =========================================================================
    # Periodic Tasks - Cleanup
    # =========================================================================

    PeriodicTask.objects.get_or_create(
        name="Sharing: Cleanup Access Logs",
        defaults={
            "task": "sharing.tasks.cleanup_share_logs",
            "crontab": crontab_daily_2am,
            "enabled": True,
            "description": (
                "Deletes access logs past retention (default 90 days) and "
                "undelivered notifications older than 30 days."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    """Remove all sharing periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name__in=TASK_NAMES).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("sharing", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
