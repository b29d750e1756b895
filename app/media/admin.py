"""Django admin configuration for media app."""

from django.contrib import admin

from media.models import MediaFile


@admin.register(MediaFile)
class MediaFileAdmin(admin.ModelAdmin):
    """Admin configuration for MediaFile model."""

    list_display = [
        "id",
        "original_filename",
        "mime_type",
        "file_size",
        "uploader",
        "created_at",
    ]
    search_fields = ["original_filename", "uploader__username", "uploader__email"]
    readonly_fields = [
        "id",
        "file_size",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["uploader"]
