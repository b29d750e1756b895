"""
End-to-end share link journeys over HTTP.

Owner creates a link, a recipient is notified, anonymous holders use it
until it runs out, and the owner reads back the analytics.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from sharing.models import Share, ShareNotification
from sharing.tasks import send_share_notifications


@pytest.mark.django_db
class TestShareLinkJourney:
    def test_create_notify_consume_and_report(
        self,
        owner_client,
        media_file,
        mailoutbox,
        django_capture_on_commit_callbacks,
    ):
        assert send_share_notifications.app.conf.task_always_eager is True

        with django_capture_on_commit_callbacks(execute=True):
            created = owner_client.post(
                reverse("sharing:file-shares", kwargs={"file_id": media_file.id}),
                {
                    "permission": "DOWNLOAD",
                    "max_access": 2,
                    "recipient_emails": ["bob@example.com"],
                },
                format="json",
            )
        assert created.status_code == status.HTTP_201_CREATED
        share = Share.objects.get(pk=created.json()["id"])

        notification = ShareNotification.objects.get(share=share)
        assert notification.delivered is True
        assert created.json()["share_url"] in mailoutbox[0].body

        holder = APIClient()
        landing = holder.get(reverse("sharing:public-share", kwargs={"token": share.share_token}))
        assert landing.json()["remaining_accesses"] == 2

        download_url = reverse("sharing:public-share-download", kwargs={"token": share.share_token})
        statuses = [holder.get(download_url).status_code for _ in range(3)]
        assert statuses == [200, 200, 404]

        analytics = owner_client.get(
            reverse("sharing:share-analytics", kwargs={"share_id": share.pk})
        ).json()
        assert analytics["download_count"] == 2
        assert analytics["denied_attempts"] == 1
        assert analytics["is_usable"] is False
        assert analytics["notifications"]["delivered"] == 1
