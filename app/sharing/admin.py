"""Django admin configuration for sharing app."""

from django.contrib import admin

from sharing.models import Share, ShareAccess, ShareNotification


@admin.register(Share)
class ShareAdmin(admin.ModelAdmin):
    """Admin configuration for Share model."""

    list_display = [
        "id",
        "file_id",
        "owner",
        "permission",
        "is_active",
        "access_count",
        "max_access",
        "expires_at",
        "created_at",
    ]
    list_filter = ["permission", "is_active", "deactivation_reason"]
    search_fields = ["file_id", "owner__username", "owner__email"]
    readonly_fields = [
        "share_token",
        "access_count",
        "deactivated_at",
        "deactivation_reason",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["owner"]


@admin.register(ShareAccess)
class ShareAccessAdmin(admin.ModelAdmin):
    """Read-only view of the access audit trail."""

    list_display = [
        "id",
        "share",
        "access_type",
        "granted",
        "denial_reason",
        "accessor_ip",
        "accessed_at",
    ]
    list_filter = ["access_type", "granted"]
    search_fields = ["accessor_ip"]
    raw_id_fields = ["share"]

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ShareNotification)
class ShareNotificationAdmin(admin.ModelAdmin):
    """Admin configuration for ShareNotification model."""

    list_display = [
        "notification_id",
        "share",
        "recipient_email",
        "delivered",
        "attempt_count",
        "sent_at",
    ]
    list_filter = ["delivered"]
    search_fields = ["recipient_email", "notification_id"]
    readonly_fields = ["notification_id", "sent_at", "delivered_at", "last_attempt_at"]
    raw_id_fields = ["share"]
