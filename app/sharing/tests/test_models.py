"""
Tests for sharing models.

These tests verify:
- Share lifecycle predicates (expired, exhausted, usable)
- Token immutability and deactivation semantics
- Database constraints on access counts
- Append-only access rows and one-way notification delivery
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction

from core.exceptions import ValidationError
from sharing.models import DeactivationReason, Share, ShareAccess
from sharing.tests.conftest import NOW
from sharing.tests.factories import (
    ShareAccessFactory,
    ShareFactory,
    ShareNotificationFactory,
)


@pytest.mark.django_db
class TestShareLifecycle:
    def test_share_without_limits_is_usable(self):
        share = ShareFactory()

        assert share.is_usable(NOW)
        assert share.remaining_accesses is None
        assert not share.is_exhausted

    def test_expiration_is_exclusive_of_the_instant(self):
        share = ShareFactory(expires_at=NOW)

        assert not share.is_expired(NOW)
        assert share.is_expired(NOW + timedelta(microseconds=1))

    def test_exhausted_when_count_reaches_limit(self):
        share = ShareFactory(max_access=2, access_count=2)

        assert share.is_exhausted
        assert share.remaining_accesses == 0
        assert not share.is_usable(NOW)

    def test_inactive_share_is_not_usable(self):
        share = ShareFactory(is_active=False)

        assert not share.is_usable(NOW)

    def test_allows_download_follows_permission(self):
        assert ShareFactory(permission="DOWNLOAD").allows_download
        assert not ShareFactory(permission="VIEW_ONLY").allows_download


@pytest.mark.django_db
class TestShareQuerySet:
    def test_expired_only_matches_active_past_due_shares(self):
        due = ShareFactory(expires_at=NOW - timedelta(hours=1))
        ShareFactory(expires_at=NOW + timedelta(hours=1))
        ShareFactory(expires_at=NOW - timedelta(hours=1), is_active=False)
        ShareFactory(expires_at=None)

        assert list(Share.objects.expired(NOW)) == [due]

    def test_exhausted_only_matches_active_limited_shares(self):
        spent = ShareFactory(max_access=3, access_count=3)
        ShareFactory(max_access=3, access_count=2)
        ShareFactory(max_access=None, access_count=100)

        assert list(Share.objects.exhausted()) == [spent]

    def test_usable_excludes_every_dead_state(self):
        live = ShareFactory(max_access=5, access_count=1, expires_at=NOW + timedelta(days=1))
        ShareFactory(is_active=False)
        ShareFactory(expires_at=NOW - timedelta(seconds=1))
        ShareFactory(max_access=1, access_count=1)

        assert list(Share.objects.usable(NOW)) == [live]


@pytest.mark.django_db
class TestShareToken:
    def test_token_cannot_be_changed_after_creation(self):
        share = ShareFactory()
        share = Share.objects.get(pk=share.pk)
        share.share_token = "something-else"

        with pytest.raises(ValidationError) as exc_info:
            share.save()

        assert exc_info.value.error_code == "TOKEN_IMMUTABLE"

    def test_other_fields_can_be_saved(self):
        share = Share.objects.get(pk=ShareFactory().pk)
        share.permission = "VIEW_ONLY"
        share.save()

        share.refresh_from_db()
        assert share.permission == "VIEW_ONLY"

    def test_tokens_are_unique(self):
        share = ShareFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            ShareFactory(share_token=share.share_token)


@pytest.mark.django_db
class TestShareDeactivate:
    def test_first_deactivation_records_reason(self):
        share = ShareFactory()

        assert share.deactivate(DeactivationReason.REVOKED, NOW) is True

        share.refresh_from_db()
        assert share.is_active is False
        assert share.deactivation_reason == DeactivationReason.REVOKED
        assert share.deactivated_at == NOW

    def test_second_deactivation_keeps_original_reason(self):
        share = ShareFactory()
        share.deactivate(DeactivationReason.EXPIRED, NOW)

        stale = Share.objects.get(pk=share.pk)
        stale.is_active = True  # simulate a copy loaded before the first call
        assert stale.deactivate(DeactivationReason.REVOKED, NOW + timedelta(minutes=1)) is False

        assert stale.is_active is False
        assert stale.deactivation_reason == DeactivationReason.EXPIRED


@pytest.mark.django_db
class TestShareConstraints:
    def test_max_access_must_be_positive(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            ShareFactory(max_access=0)

    def test_access_count_cannot_exceed_max_access(self):
        share = ShareFactory(max_access=1, access_count=1)

        with pytest.raises(IntegrityError), transaction.atomic():
            Share.objects.filter(pk=share.pk).update(access_count=2)


@pytest.mark.django_db
class TestShareAccess:
    def test_access_rows_are_append_only(self):
        access = ShareAccessFactory()
        access.accessor_ip = "192.0.2.1"

        with pytest.raises(ValidationError) as exc_info:
            access.save()

        assert exc_info.value.error_code == "ACCESS_RECORD_IMMUTABLE"

    def test_deleting_share_cascades_to_accesses(self):
        access = ShareAccessFactory()
        access.share.delete()

        assert not ShareAccess.objects.filter(pk=access.pk).exists()


@pytest.mark.django_db
class TestShareNotification:
    def test_notification_id_is_generated(self):
        notification = ShareNotificationFactory()

        assert notification.notification_id is not None

    def test_delivered_cannot_be_reverted(self):
        notification = ShareNotificationFactory(delivered=True, delivered_at=NOW)
        notification.refresh_from_db()
        notification.delivered = False

        with pytest.raises(ValidationError) as exc_info:
            notification.save()

        assert exc_info.value.error_code == "DELIVERY_IRREVERSIBLE"

    def test_undelivered_can_become_delivered(self):
        notification = ShareNotificationFactory()
        notification.delivered = True
        notification.save()

        notification.refresh_from_db()
        assert notification.delivered is True
