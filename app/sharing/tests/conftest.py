"""
Test fixtures for sharing app.

Provides fixtures for:
- Owners, strangers and staff users with authenticated API clients
- A stored media file and shares pointing at it
- A pinned clock and a recording mail sender
- Service instances wired to those collaborators
"""

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.clock import FixedClock
from media.models import MediaFile
from media.tests.factories import MediaFileFactory, UserFactory
from sharing.config import SharingConfig
from sharing.services import (
    AccessRecorder,
    MaintenanceService,
    NotificationDispatcher,
    SharePolicyEngine,
    ShareService,
)
from sharing.tests.factories import ShareFactory

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


class RecordingSender:
    """
    EmailSender that keeps messages in memory.

    Addresses in `fail_for` get a False return; addresses in `raise_for`
    raise OSError, as a dropped SMTP connection would.
    """

    def __init__(self, fail_for=(), raise_for=()):
        self.fail_for = {e.lower() for e in fail_for}
        self.raise_for = {e.lower() for e in raise_for}
        self.outbox: list[dict] = []

    def send(self, to, subject, body_text, body_html=None, **kwargs) -> bool:
        address = to if isinstance(to, str) else to[0]
        if address.lower() in self.raise_for:
            raise OSError("Connection reset by peer")
        if address.lower() in self.fail_for:
            return False
        self.outbox.append({"to": address, "subject": subject, "body": body_text})
        return True


# =============================================================================
# Users and clients
# =============================================================================


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Store uploads under a per-test temporary directory."""
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.fixture
def owner(db):
    return UserFactory(username="alice")


@pytest.fixture
def stranger(db):
    return UserFactory(username="mallory")


@pytest.fixture
def staff_user(db):
    return UserFactory(username="ops", is_staff=True)


def _client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def api_client() -> APIClient:
    """Return unauthenticated API client."""
    return APIClient()


@pytest.fixture
def owner_client(owner) -> APIClient:
    return _client_for(owner)


@pytest.fixture
def stranger_client(stranger) -> APIClient:
    return _client_for(stranger)


@pytest.fixture
def staff_client(staff_user) -> APIClient:
    return _client_for(staff_user)


# =============================================================================
# Files and shares
# =============================================================================


@pytest.fixture
def media_file(owner) -> MediaFile:
    """A stored PDF owned by `owner`."""
    return MediaFileFactory(uploader=owner, original_filename="q3-report.pdf")


@pytest.fixture
def share(media_file):
    """Active, unlimited DOWNLOAD share of `media_file`."""
    return ShareFactory(owner=media_file.uploader, file_id=media_file.id)


# =============================================================================
# Collaborators and services
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def config() -> SharingConfig:
    return SharingConfig(public_base_url="https://files.example.com")


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def engine(config, clock) -> SharePolicyEngine:
    return SharePolicyEngine(config=config, clock=clock)


@pytest.fixture
def recorder(clock) -> AccessRecorder:
    return AccessRecorder(clock=clock)


@pytest.fixture
def dispatcher(sender, config, clock) -> NotificationDispatcher:
    return NotificationDispatcher(email_sender=sender, config=config, clock=clock)


@pytest.fixture
def share_service(dispatcher, config, clock) -> ShareService:
    return ShareService(dispatcher=dispatcher, config=config, clock=clock)


@pytest.fixture
def maintenance(config, clock) -> MaintenanceService:
    return MaintenanceService(config=config, clock=clock)
