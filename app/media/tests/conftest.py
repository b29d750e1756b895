"""
Test fixtures for media app.

Provides fixtures for:
- Users and stored media files
- A temporary MEDIA_ROOT so tests never write to the real upload dir
"""

from __future__ import annotations

import pytest

from media.models import MediaFile
from media.tests.factories import MediaFileFactory, UserFactory


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Store uploads under a per-test temporary directory."""
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def media_file(user) -> MediaFile:
    """A stored PDF owned by `user`."""
    return MediaFileFactory(uploader=user)
