"""
Media services package.

Exports:
    MediaFileStore: File store collaborator (metadata + byte streams)
    FileMetadata: Read-only file description
    FileDeliveryService: Streaming HTTP responses for file content
"""

from media.services.delivery import FileDeliveryService
from media.services.file_store import FileMetadata, MediaFileStore

__all__ = [
    "FileDeliveryService",
    "FileMetadata",
    "MediaFileStore",
]
