"""
Reusable abstract model mixins.

Available Mixins:
    UUIDPrimaryKeyMixin: UUID primary key instead of an auto-increment integer

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class MediaFile(UUIDPrimaryKeyMixin, BaseModel):
        original_filename = models.CharField(max_length=255)
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a random UUID as primary key.

    File identifiers appear in owner-facing URLs, so they should not
    reveal row counts or be enumerable.

    Fields:
        id: UUIDField primary key, generated with uuid4
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
