"""
Tests for MediaFileStore and FileDeliveryService.
"""

from __future__ import annotations

import uuid

import pytest

from core.exceptions import NotFoundError
from media.services.delivery import FileDeliveryService
from media.services.file_store import MediaFileStore
from media.tests.factories import SAMPLE_CONTENT


@pytest.mark.django_db
class TestMediaFileStore:
    def test_metadata(self, media_file):
        metadata = MediaFileStore().get_file_metadata(media_file.id)

        assert metadata.file_id == media_file.id
        assert metadata.owner_id == media_file.uploader_id
        assert metadata.filename == "report.pdf"
        assert metadata.content_type == "application/pdf"
        assert metadata.size == len(SAMPLE_CONTENT)

    def test_unknown_or_malformed_id(self):
        store = MediaFileStore()

        assert store.get_file_metadata(uuid.uuid4()) is None
        assert store.get_file_metadata("not-a-uuid") is None

    def test_read_stream(self, media_file):
        with MediaFileStore().read_file_stream(media_file.id) as stream:
            assert stream.read() == SAMPLE_CONTENT

    def test_missing_stored_object(self, media_file):
        media_file.file.storage.delete(media_file.file.name)

        with pytest.raises(NotFoundError) as exc_info:
            MediaFileStore().read_file_stream(media_file.id)

        assert exc_info.value.error_code == "FILE_NOT_FOUND"


@pytest.mark.django_db
class TestFileDelivery:
    def test_attachment_response(self, media_file):
        store = MediaFileStore()
        metadata = store.get_file_metadata(media_file.id)

        response = FileDeliveryService(store).serve_file_response(metadata, as_attachment=True)

        assert response["Content-Type"] == "application/pdf"
        assert response["Content-Disposition"] == 'attachment; filename="report.pdf"'
        assert b"".join(response.streaming_content) == SAMPLE_CONTENT

    def test_inline_response(self, media_file):
        store = MediaFileStore()
        metadata = store.get_file_metadata(media_file.id)

        response = FileDeliveryService(store).serve_file_response(metadata, as_attachment=False)

        assert response["Content-Disposition"].startswith("inline")
        response.close()
