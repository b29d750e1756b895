import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Share",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "share_token",
                    models.CharField(
                        editable=False,
                        help_text="Opaque URL-safe token identifying this share",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "file_id",
                    models.UUIDField(
                        db_index=True,
                        help_text="Identifier of the shared file",
                    ),
                ),
                (
                    "permission",
                    models.CharField(
                        choices=[
                            ("VIEW_ONLY", "View only"),
                            ("DOWNLOAD", "View and download"),
                        ],
                        default="VIEW_ONLY",
                        help_text="Access level granted by the link",
                        max_length=16,
                    ),
                ),
                (
                    "expires_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="When this share expires (null = never)",
                        null=True,
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Whether the link can still be used",
                    ),
                ),
                (
                    "access_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of committed accesses",
                    ),
                ),
                (
                    "max_access",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Maximum number of accesses (null = unlimited)",
                        null=True,
                    ),
                ),
                (
                    "deactivated_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the share was deactivated",
                        null=True,
                    ),
                ),
                (
                    "deactivation_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("REVOKED", "Revoked by owner"),
                            ("EXPIRED", "Expired"),
                            ("EXHAUSTED", "Access limit reached"),
                        ],
                        default="",
                        help_text="Why the share was deactivated",
                        max_length=16,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="User who created the share",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="link_shares",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Share",
                "verbose_name_plural": "Shares",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["owner", "created_at"],
                        name="share_owner_created_idx",
                    ),
                    models.Index(
                        fields=["is_active", "expires_at"],
                        name="share_active_expires_idx",
                    ),
                    models.Index(
                        fields=["file_id", "is_active"],
                        name="share_file_active_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_access__isnull", True),
                            ("max_access__gte", 1),
                            _connector="OR",
                        ),
                        name="share_max_access_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_access__isnull", True),
                            ("access_count__lte", models.F("max_access")),
                            _connector="OR",
                        ),
                        name="share_access_count_within_limit",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShareAccess",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "accessor_ip",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Client IP address (IPv4 or IPv6)",
                        max_length=45,
                    ),
                ),
                (
                    "user_agent",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Client User-Agent header",
                        max_length=512,
                    ),
                ),
                (
                    "accessed_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="When the access happened",
                    ),
                ),
                (
                    "access_type",
                    models.CharField(
                        choices=[("VIEW", "View"), ("DOWNLOAD", "Download")],
                        help_text="Whether content was viewed or downloaded",
                        max_length=16,
                    ),
                ),
                (
                    "granted",
                    models.BooleanField(
                        default=True,
                        help_text="False for logged denied attempts",
                    ),
                ),
                (
                    "denial_reason",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Precise denial reason for denied attempts",
                        max_length=32,
                    ),
                ),
                (
                    "share",
                    models.ForeignKey(
                        help_text="Share that was accessed",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="accesses",
                        to="sharing.share",
                    ),
                ),
            ],
            options={
                "verbose_name": "Share Access",
                "verbose_name_plural": "Share Accesses",
                "ordering": ["-accessed_at"],
                "indexes": [
                    models.Index(
                        fields=["share", "accessed_at"],
                        name="shareaccess_share_at_idx",
                    ),
                    models.Index(
                        fields=["accessor_ip", "accessed_at"],
                        name="shareaccess_ip_at_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShareNotification",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "recipient_email",
                    models.CharField(
                        db_index=True,
                        help_text="Recipient email address as supplied by the owner",
                        max_length=254,
                    ),
                ),
                (
                    "notification_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Stable identifier used for tracking and retries",
                        unique=True,
                    ),
                ),
                (
                    "sent_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="When the first delivery attempt was made",
                    ),
                ),
                (
                    "delivered",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether the mail sender accepted the message",
                    ),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When delivery was confirmed",
                        null=True,
                    ),
                ),
                (
                    "attempt_count",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Number of delivery attempts",
                    ),
                ),
                (
                    "last_attempt_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the most recent delivery attempt was made",
                        null=True,
                    ),
                ),
                (
                    "last_error",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Reason the last attempt failed",
                        max_length=255,
                    ),
                ),
                (
                    "share",
                    models.ForeignKey(
                        help_text="Share the notification is about",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to="sharing.share",
                    ),
                ),
            ],
            options={
                "verbose_name": "Share Notification",
                "verbose_name_plural": "Share Notifications",
                "ordering": ["-sent_at"],
                "indexes": [
                    models.Index(
                        fields=["share", "sent_at"],
                        name="sharenotif_share_sent_idx",
                    ),
                    models.Index(
                        fields=["delivered", "sent_at"],
                        name="sharenotif_delivered_idx",
                    ),
                ],
            },
        ),
    ]
