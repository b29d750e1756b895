"""
FileDeliveryService for streaming stored files over HTTP.

Provides:
- Content-Disposition handling (attachment vs inline)
- Streaming responses that never load the whole file into memory
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.http import FileResponse

from core.services import BaseService

if TYPE_CHECKING:
    from media.services.file_store import FileMetadata
    from toolkit.protocols import FileStore


class FileDeliveryService(BaseService):
    """
    Build HTTP responses for file content.

    Access control must already have been decided by the caller.

    Usage:
        response = FileDeliveryService(store).serve_file_response(
            metadata,
            as_attachment=True,
        )
    """

    def __init__(self, file_store: FileStore):
        self.file_store = file_store

    def serve_file_response(
        self,
        metadata: FileMetadata,
        as_attachment: bool = True,
    ) -> FileResponse:
        """
        Create a streaming response for a file.

        Args:
            metadata: The file to serve
            as_attachment: If True, force download; if False, display inline

        Returns:
            FileResponse with Content-Type and Content-Disposition set

        Raises:
            NotFoundError: If the file content is missing from storage
        """
        stream = self.file_store.read_file_stream(metadata.file_id)
        response = FileResponse(
            stream,
            as_attachment=as_attachment,
            filename=metadata.filename,
            content_type=metadata.content_type,
        )
        self.get_logger().debug(
            f"Serving file {metadata.file_id}",
            extra={"file_id": str(metadata.file_id), "attachment": as_attachment},
        )
        return response
