"""
Serializers for share links.

Provides:
- ShareSerializer: Read-only owner view of a share (includes the URL)
- ShareCreateSerializer: Validate share creation input
- SharePermissionUpdateSerializer: Change a share's permission
- ShareRevokeSerializer: Revocation options
- ShareNotifySerializer: Recipient list for notifications
- ShareAccessSerializer: Access history rows
- PublicShareSerializer: What an anonymous link holder may see
- Analytics serializers for per-share and system-wide reports

Serializers only validate and render. Creation and state changes go
through sharing.services.ShareService.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers

from sharing.config import SharingConfig
from sharing.links import build_share_url
from sharing.models import AccessType, Share, ShareAccess, ShareNotification, SharePermission

# Upper bound on recipients per notify request
MAX_RECIPIENTS = 50


class ShareSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for Share.

    Used for owner-facing responses. The token is exposed only through
    share_url, which is what owners hand out.
    """

    share_url = serializers.SerializerMethodField()
    remaining_accesses = serializers.IntegerField(read_only=True, allow_null=True)
    is_usable = serializers.SerializerMethodField()

    class Meta:
        """Serializer metadata."""

        model = Share
        fields = [
            "id",
            "file_id",
            "share_url",
            "permission",
            "expires_at",
            "is_active",
            "is_usable",
            "access_count",
            "max_access",
            "remaining_accesses",
            "deactivated_at",
            "deactivation_reason",
            "created_at",
        ]
        read_only_fields = fields

    def get_share_url(self, obj: Share) -> str:
        config = self.context.get("config") or SharingConfig.from_settings()
        return build_share_url(obj, config)

    def get_is_usable(self, obj: Share) -> bool:
        now = self.context.get("now")
        if now is None:
            from django.utils import timezone

            now = timezone.now()
        return obj.is_usable(now)


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Downloadable, five uses, notify two people",
            value={
                "permission": "DOWNLOAD",
                "max_access": 5,
                "expires_at": "2030-01-31T23:59:59Z",
                "recipient_emails": ["alice@example.com", "bob@example.com"],
            },
            request_only=True,
        ),
        OpenApiExample(
            "View-only, unlimited",
            value={"permission": "VIEW_ONLY"},
            request_only=True,
        ),
    ]
)
class ShareCreateSerializer(serializers.Serializer):
    """
    Input for creating a share.

    Past expirations are accepted; the resulting link is simply unusable.
    """

    permission = serializers.ChoiceField(
        choices=SharePermission.choices,
        default=SharePermission.VIEW_ONLY,
        help_text="VIEW_ONLY or DOWNLOAD",
    )
    expires_at = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="Expiration time (omit for no expiration)",
    )
    max_access = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=1,
        help_text="Maximum number of accesses (omit for unlimited)",
    )
    recipient_emails = serializers.ListField(
        child=serializers.EmailField(),
        required=False,
        default=list,
        max_length=MAX_RECIPIENTS,
        help_text="Addresses to notify once the share is created",
    )


class SharePermissionUpdateSerializer(serializers.Serializer):
    permission = serializers.ChoiceField(choices=SharePermission.choices)


class ShareRevokeSerializer(serializers.Serializer):
    notify_recipients = serializers.BooleanField(
        default=False,
        help_text="Email previously notified recipients about the revocation",
    )


class ShareNotifySerializer(serializers.Serializer):
    """
    Recipient list for a notify request.

    Addresses are not syntax-checked here: each invalid address becomes a
    failed notification result instead of rejecting the whole request.
    """

    recipient_emails = serializers.ListField(
        child=serializers.CharField(max_length=254, allow_blank=True),
        allow_empty=False,
        max_length=MAX_RECIPIENTS,
    )


class NotificationResultSerializer(serializers.Serializer):
    recipient_email = serializers.CharField()
    notification_id = serializers.UUIDField()
    delivered = serializers.BooleanField()
    error = serializers.CharField(allow_blank=True)


class ShareNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        """Serializer metadata."""

        model = ShareNotification
        fields = [
            "notification_id",
            "recipient_email",
            "sent_at",
            "delivered",
            "delivered_at",
            "attempt_count",
            "last_error",
        ]
        read_only_fields = fields


class ShareAccessSerializer(serializers.ModelSerializer):
    class Meta:
        """Serializer metadata."""

        model = ShareAccess
        fields = [
            "id",
            "access_type",
            "granted",
            "denial_reason",
            "accessor_ip",
            "user_agent",
            "accessed_at",
        ]
        read_only_fields = fields


class ShareAccessQuerySerializer(serializers.Serializer):
    access_type = serializers.ChoiceField(choices=AccessType.choices, required=False)


class PublicShareSerializer(serializers.Serializer):
    """
    Landing-page view of a share for anonymous link holders.

    Built from a share and its file metadata. Never includes the owner,
    the token or internal ids.
    """

    filename = serializers.CharField()
    content_type = serializers.CharField()
    size = serializers.IntegerField()
    permission = serializers.ChoiceField(choices=SharePermission.choices)
    can_download = serializers.BooleanField()
    expires_at = serializers.DateTimeField(allow_null=True)
    remaining_accesses = serializers.IntegerField(allow_null=True)


class NotificationStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    delivered = serializers.IntegerField()
    failed = serializers.IntegerField()
    delivery_rate = serializers.FloatField()


class ShareAnalyticsSerializer(serializers.Serializer):
    """Per-share usage summary."""

    share_id = serializers.IntegerField()
    is_usable = serializers.BooleanField()
    access_count = serializers.IntegerField()
    max_access = serializers.IntegerField(allow_null=True)
    remaining_accesses = serializers.IntegerField(allow_null=True)
    total_accesses = serializers.IntegerField()
    view_count = serializers.IntegerField()
    download_count = serializers.IntegerField()
    denied_attempts = serializers.IntegerField()
    accesses_24h = serializers.IntegerField()
    accesses_7d = serializers.IntegerField()
    last_accessed_at = serializers.DateTimeField(allow_null=True)
    notifications = NotificationStatsSerializer()


class FileSharingStatsSerializer(serializers.Serializer):
    file_id = serializers.UUIDField()
    total_shares = serializers.IntegerField()
    active_shares = serializers.IntegerField()
    has_active_shares = serializers.BooleanField()
    total_access_count = serializers.IntegerField()
    last_shared_at = serializers.DateTimeField(allow_null=True)
    last_accessed_at = serializers.DateTimeField(allow_null=True)


class UsageAnalyticsSerializer(serializers.Serializer):
    """System-wide usage snapshot with health classification."""

    generated_at = serializers.DateTimeField()
    total_shares = serializers.IntegerField()
    active_shares = serializers.IntegerField()
    active_share_percentage = serializers.FloatField()
    expired_shares = serializers.IntegerField()
    exhausted_shares = serializers.IntegerField()
    accesses_24h = serializers.IntegerField()
    views_24h = serializers.IntegerField()
    downloads_24h = serializers.IntegerField()
    download_rate_24h = serializers.FloatField()
    accesses_7d = serializers.IntegerField()
    views_7d = serializers.IntegerField()
    downloads_7d = serializers.IntegerField()
    suspicious_ip_count = serializers.IntegerField()
    query_time_ms = serializers.IntegerField()
    health = serializers.SerializerMethodField()
    issues = serializers.ListField(child=serializers.CharField())

    def get_health(self, obj) -> str:
        return obj.health.value


class SuspiciousActivitySerializer(serializers.Serializer):
    ip = serializers.CharField()
    access_count = serializers.IntegerField()
    first_seen = serializers.DateTimeField()
    last_seen = serializers.DateTimeField()


class SuspiciousActivityQuerySerializer(serializers.Serializer):
    window_hours = serializers.IntegerField(default=24, min_value=1, max_value=24 * 30)
    threshold = serializers.IntegerField(required=False, min_value=1)
