"""
Tests for sharing API views.

These tests verify:
- Owner endpoints enforce ownership and render service failures
- Notifications are queued only after the share commits
- Public endpoints serve content, count accesses and return one
  generic 404 body for every denial
- Staff-only maintenance endpoints
- Transient store failures become 503 with Retry-After
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from core.exceptions import TransientStoreError
from media.tests.factories import SAMPLE_CONTENT
from sharing.exceptions import PUBLIC_DENIAL_MESSAGE
from sharing.models import DeactivationReason, Share, ShareAccess
from sharing.tests.factories import ShareAccessFactory, ShareFactory

PUBLIC_DENIAL = {"error": PUBLIC_DENIAL_MESSAGE, "error_code": "SHARE_UNAVAILABLE"}


def _content(response) -> bytes:
    return b"".join(response.streaming_content)


# =============================================================================
# Owner endpoints
# =============================================================================


@pytest.mark.django_db
class TestCreateShareView:
    def url(self, media_file):
        return reverse("sharing:file-shares", kwargs={"file_id": media_file.id})

    def test_creates_share(self, owner_client, media_file):
        response = owner_client.post(
            self.url(media_file),
            {"permission": "DOWNLOAD", "max_access": 5},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        share = Share.objects.get(pk=body["id"])
        assert body["share_url"].endswith(f"/api/v1/sharing/public/{share.share_token}/")
        assert body["remaining_accesses"] == 5
        assert body["is_usable"] is True
        assert body["notifications_queued"] == 0
        assert "share_token" not in body

    def test_queues_notifications_after_commit(
        self, owner_client, media_file, django_capture_on_commit_callbacks
    ):
        with patch("sharing.views.send_share_notifications") as mock_task:
            with django_capture_on_commit_callbacks(execute=True):
                response = owner_client.post(
                    self.url(media_file),
                    {"recipient_emails": ["bob@example.com", "carol@example.com"]},
                    format="json",
                )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["notifications_queued"] == 2
        mock_task.delay.assert_called_once_with(
            response.json()["id"], ["bob@example.com", "carol@example.com"]
        )

    def test_already_expired_share_is_created_unusable(self, owner_client, media_file):
        past = timezone.now() - timedelta(hours=1)

        response = owner_client.post(
            self.url(media_file), {"expires_at": past.isoformat()}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["is_usable"] is False

    def test_zero_max_access_is_rejected(self, owner_client, media_file):
        response = owner_client.post(self.url(media_file), {"max_access": 0}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "max_access" in response.json()

    def test_stranger_cannot_share(self, stranger_client, media_file):
        response = stranger_client.post(self.url(media_file), {}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "NOT_OWNER"

    def test_requires_authentication(self, api_client, media_file):
        response = api_client.post(self.url(media_file), {}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lists_file_shares_with_stats(self, owner_client, media_file, share):
        response = owner_client.get(self.url(media_file))

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["stats"]["total_shares"] == 1
        assert [s["id"] for s in body["shares"]] == [share.pk]

    def test_revokes_all_shares_of_file(self, owner_client, media_file, share):
        response = owner_client.delete(self.url(media_file))

        assert response.json() == {"revoked": 1}


@pytest.mark.django_db
class TestShareDetailView:
    def url(self, share):
        return reverse("sharing:share-detail", kwargs={"share_id": share.pk})

    def test_owner_revokes(self, owner_client, share):
        response = owner_client.delete(self.url(share))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        share.refresh_from_db()
        assert share.deactivation_reason == DeactivationReason.REVOKED

    def test_stranger_cannot_revoke(self, stranger_client, share):
        response = stranger_client.delete(self.url(share))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "NOT_OWNER"
        share.refresh_from_db()
        assert share.is_active is True

    def test_unknown_share(self, owner_client):
        response = owner_client.get(reverse("sharing:share-detail", kwargs={"share_id": 999_999}))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_permission_change_on_inactive_share_conflicts(self, owner_client, share):
        Share.objects.filter(pk=share.pk).update(is_active=False)

        response = owner_client.patch(self.url(share), {"permission": "VIEW_ONLY"}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_transient_failure_is_503(self, owner_client, share):
        with patch(
            "sharing.views.ShareService.get_share",
            side_effect=TransientStoreError("database is locked"),
        ):
            response = owner_client.get(self.url(share))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response["Retry-After"] == "5"
        assert response.json()["error_code"] == "TRANSIENT_STORE_FAILURE"


@pytest.mark.django_db
class TestShareListView:
    def test_lists_own_shares(self, owner_client, owner, stranger):
        mine = ShareFactory(owner=owner)
        ShareFactory(owner=owner, is_active=False)
        ShareFactory(owner=stranger)

        response = owner_client.get(reverse("sharing:share-list"), {"active": "true"})

        assert response.json()["count"] == 1
        assert response.json()["results"][0]["id"] == mine.pk

    @pytest.mark.parametrize("page_size,expected", [("abc", 3), ("0", 1), ("500", 3)])
    def test_page_size_is_parsed_and_clamped(self, owner_client, owner, page_size, expected):
        ShareFactory.create_batch(3, owner=owner)

        response = owner_client.get(reverse("sharing:share-list"), {"page_size": page_size})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 3
        assert len(response.json()["results"]) == expected

    def test_timeout_while_paginating_is_503(self, owner_client, owner):
        ShareFactory(owner=owner)

        with patch(
            "sharing.views.PageNumberPagination.paginate_queryset",
            side_effect=OperationalError("database is locked"),
        ):
            response = owner_client.get(reverse("sharing:share-list"))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response["Retry-After"] == "5"
        assert response.json()["error_code"] == "TRANSIENT_STORE_FAILURE"


@pytest.mark.django_db
class TestReportingViews:
    def test_analytics(self, owner_client, share):
        ShareAccessFactory(share=share)

        response = owner_client.get(
            reverse("sharing:share-analytics", kwargs={"share_id": share.pk})
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_accesses"] == 1
        assert response.json()["notifications"]["total"] == 0

    def test_access_history_filter(self, owner_client, share):
        ShareAccessFactory(share=share, access_type="VIEW")
        ShareAccessFactory(share=share, access_type="DOWNLOAD")

        response = owner_client.get(
            reverse("sharing:share-accesses", kwargs={"share_id": share.pk}),
            {"access_type": "DOWNLOAD"},
        )

        assert [r["access_type"] for r in response.json()["results"]] == ["DOWNLOAD"]

    def test_notify_reports_each_recipient(self, owner_client, share, mailoutbox):
        response = owner_client.post(
            reverse("sharing:share-notify", kwargs={"share_id": share.pk}),
            {"recipient_emails": ["bob@example.com", "nope"]},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert [r["delivered"] for r in response.json()] == [True, False]
        assert len(mailoutbox) == 1


# =============================================================================
# Public endpoints
# =============================================================================


@pytest.mark.django_db
class TestPublicShareViews:
    def test_landing_page_does_not_count(self, api_client, share):
        response = api_client.get(reverse("sharing:public-share", kwargs={"token": share.share_token}))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["filename"] == "q3-report.pdf"
        assert response.json()["can_download"] is True
        share.refresh_from_db()
        assert share.access_count == 0

    def test_download_serves_attachment_and_counts(self, api_client, share):
        response = api_client.get(
            reverse("sharing:public-share-download", kwargs={"token": share.share_token}),
            HTTP_USER_AGENT="curl/8.0",
        )

        assert response.status_code == status.HTTP_200_OK
        assert _content(response) == SAMPLE_CONTENT
        assert response["Content-Disposition"].startswith("attachment")
        share.refresh_from_db()
        assert share.access_count == 1
        access = ShareAccess.objects.get(share=share)
        assert access.access_type == "DOWNLOAD"
        assert access.user_agent == "curl/8.0"

    def test_view_is_inline(self, api_client, share):
        response = api_client.get(
            reverse("sharing:public-share-view", kwargs={"token": share.share_token})
        )

        assert response["Content-Disposition"].startswith("inline")
        _content(response)

    def test_limit_of_two(self, api_client, owner, media_file):
        share = ShareFactory(owner=owner, file_id=media_file.id, max_access=2)
        url = reverse("sharing:public-share-download", kwargs={"token": share.share_token})

        first = api_client.get(url)
        second = api_client.get(url)
        third = api_client.get(url)

        assert [r.status_code for r in (first, second, third)] == [200, 200, 404]
        assert third.json() == PUBLIC_DENIAL
        share.refresh_from_db()
        assert share.access_count == 2
        assert share.is_active is False

    def test_every_denial_looks_the_same(self, api_client, owner, media_file):
        revoked = ShareFactory(owner=owner, file_id=media_file.id, is_active=False)
        expired = ShareFactory(
            owner=owner, file_id=media_file.id, expires_at=timezone.now() - timedelta(days=1)
        )
        view_only = ShareFactory(owner=owner, file_id=media_file.id, permission="VIEW_ONLY")

        bodies = []
        for token in ("no-such-token", revoked.share_token, expired.share_token):
            response = api_client.get(reverse("sharing:public-share-view", kwargs={"token": token}))
            assert response.status_code == status.HTTP_404_NOT_FOUND
            bodies.append(response.json())
        response = api_client.get(
            reverse("sharing:public-share-download", kwargs={"token": view_only.share_token})
        )
        bodies.append(response.json())

        assert bodies == [PUBLIC_DENIAL] * 4

    def test_denied_download_is_logged(self, api_client, owner, media_file):
        view_only = ShareFactory(owner=owner, file_id=media_file.id, permission="VIEW_ONLY")

        api_client.get(
            reverse("sharing:public-share-download", kwargs={"token": view_only.share_token})
        )

        denied = ShareAccess.objects.get(share=view_only)
        assert denied.granted is False
        assert denied.denial_reason == "PERMISSION_DENIED"
        view_only.refresh_from_db()
        assert view_only.access_count == 0

    def test_missing_file_content_is_generic_404(self, api_client, share, media_file):
        media_file.file.delete(save=False)

        response = api_client.get(
            reverse("sharing:public-share-download", kwargs={"token": share.share_token})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == PUBLIC_DENIAL
        share.refresh_from_db()
        assert share.access_count == 0


# =============================================================================
# Staff endpoints
# =============================================================================


@pytest.mark.django_db
class TestMaintenanceViews:
    @pytest.mark.parametrize(
        "name,method",
        [
            ("sharing:maintenance-analytics", "get"),
            ("sharing:maintenance-suspicious", "get"),
            ("sharing:maintenance-run", "post"),
        ],
    )
    def test_non_staff_is_forbidden(self, owner_client, name, method):
        response = getattr(owner_client, method)(reverse(name))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_analytics(self, staff_client, share):
        response = staff_client.get(reverse("sharing:maintenance-analytics"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_shares"] == 1
        assert response.json()["health"] == "HEALTHY"

    def test_suspicious(self, staff_client, share):
        ShareAccessFactory.create_batch(4, share=share, accessor_ip="203.0.113.7")

        response = staff_client.get(
            reverse("sharing:maintenance-suspicious"), {"window_hours": 1, "threshold": 4}
        )

        assert response.json()[0]["ip"] == "203.0.113.7"
        assert response.json()[0]["access_count"] == 4

    def test_run(self, staff_client):
        ShareFactory(expires_at=timezone.now() - timedelta(minutes=1))

        response = staff_client.post(reverse("sharing:maintenance-run"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["expired_deactivated"] == 1
        assert response.json()["errors"] == {}
