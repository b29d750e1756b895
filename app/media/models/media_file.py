"""
MediaFile model for storing user-uploaded files.

Provides:
- UUID primary key so file ids in URLs are not enumerable
- Ownership (uploader) used by share creation checks
- Size and MIME metadata shown on public share pages
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile


def media_upload_path(instance: "MediaFile", filename: str) -> str:
    """
    Generate upload path for media files.

    Pattern: uploads/YYYY/MM/uuid/filename
    """
    now = timezone.now()
    return f"uploads/{now.year}/{now.month:02d}/{instance.pk}/{filename}"


class MediaFile(UUIDPrimaryKeyMixin, BaseModel):
    """
    A file uploaded by a user.

    Attributes:
        file: The stored file.
        original_filename: Name of the file as uploaded.
        mime_type: MIME type recorded at upload time.
        file_size: Size of the file in bytes.
        uploader: User who uploaded (and owns) the file.
    """

    file = models.FileField(
        upload_to=media_upload_path,
        help_text="The uploaded file",
    )

    original_filename = models.CharField(
        max_length=255,
        help_text="Original filename from the upload",
    )

    mime_type = models.CharField(
        max_length=127,
        default="application/octet-stream",
        help_text="MIME type (e.g., image/jpeg, application/pdf)",
    )

    file_size = models.BigIntegerField(
        help_text="File size in bytes",
    )

    uploader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="media_files",
        help_text="User who uploaded the file",
    )

    class Meta:
        verbose_name = "Media File"
        verbose_name_plural = "Media Files"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["uploader", "created_at"],
                name="mediafile_uploader_created_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(file_size__gte=0),
                name="media_file_size_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return self.original_filename

    @classmethod
    def create_from_upload(
        cls,
        file: "UploadedFile",
        uploader: Any,
        mime_type: str | None = None,
    ) -> "MediaFile":
        """
        Create a MediaFile from an uploaded file.

        Args:
            file: The uploaded file object.
            uploader: User uploading the file.
            mime_type: MIME type; defaults to the upload's content_type.

        Returns:
            Saved MediaFile instance.
        """
        media_file = cls(
            file=file,
            original_filename=file.name,
            mime_type=mime_type
            or getattr(file, "content_type", None)
            or "application/octet-stream",
            file_size=file.size,
            uploader=uploader,
        )
        media_file.save()
        return media_file
