"""Django app configuration for sharing app."""

from django.apps import AppConfig


class SharingAppConfig(AppConfig):
    """Configuration for the sharing app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "sharing"
    verbose_name = "File Sharing"
