"""
MediaFileStore: the file store collaborator used by share links.

Provides:
- Metadata lookup by file id (owner, name, size, MIME type)
- Streaming read access to the stored bytes

Implements toolkit.protocols.FileStore.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError

from core.exceptions import NotFoundError
from media.models import MediaFile

if TYPE_CHECKING:
    import uuid
    from typing import BinaryIO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMetadata:
    """Read-only view of a stored file."""

    file_id: uuid.UUID
    owner_id: int
    filename: str
    content_type: str
    size: int


class MediaFileStore:
    """
    File store backed by the MediaFile model and Django's storage backend.

    Usage:
        store = MediaFileStore()
        metadata = store.get_file_metadata(file_id)
        if metadata is not None and metadata.owner_id == user.id:
            stream = store.read_file_stream(file_id)
    """

    def get_file_metadata(self, file_id: uuid.UUID) -> FileMetadata | None:
        media_file = self._get(file_id)
        if media_file is None:
            return None
        return FileMetadata(
            file_id=media_file.id,
            owner_id=media_file.uploader_id,
            filename=media_file.original_filename,
            content_type=media_file.mime_type,
            size=media_file.file_size,
        )

    def read_file_stream(self, file_id: uuid.UUID) -> BinaryIO:
        """
        Open the stored bytes for reading.

        Raises:
            NotFoundError: If the record or the stored object is missing
        """
        media_file = self._get(file_id)
        if media_file is None or not media_file.file:
            raise NotFoundError(
                "File not found",
                error_code="FILE_NOT_FOUND",
                details={"file_id": str(file_id)},
            )
        try:
            return media_file.file.open("rb")
        except FileNotFoundError as exc:
            logger.error(
                f"Stored object missing for file {file_id}",
                extra={"file_id": str(file_id), "path": media_file.file.name},
            )
            raise NotFoundError(
                "File content not found",
                error_code="FILE_NOT_FOUND",
                details={"file_id": str(file_id)},
            ) from exc

    @staticmethod
    def _get(file_id) -> MediaFile | None:
        try:
            return MediaFile.objects.filter(pk=file_id).first()
        except DjangoValidationError:
            # Malformed UUID string
            return None
