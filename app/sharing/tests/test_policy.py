"""
Tests for SharePolicyEngine.

These tests verify:
- The evaluation order (lookup, active, expiry, budget, permission)
- Lazy deactivation of expired and exhausted shares
- Denied-attempt recording and the side-effect-free peek
- Denials are values, convertible to typed errors on demand
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from sharing.config import SharingConfig
from sharing.exceptions import (
    PUBLIC_DENIAL_MESSAGE,
    AccessLimitReachedError,
    ShareExpiredError,
    ShareTokenNotFoundError,
)
from sharing.models import AccessType, DeactivationReason, ShareAccess
from sharing.services import DenialReason, SharePolicyEngine
from sharing.tests.conftest import NOW
from sharing.tests.factories import ShareFactory


@pytest.mark.django_db
class TestResolveAccess:
    def test_unknown_token_is_not_found(self, engine):
        decision = engine.resolve_access("no-such-token", AccessType.VIEW)

        assert not decision
        assert decision.reason == DenialReason.NOT_FOUND
        assert decision.share is None
        assert ShareAccess.objects.count() == 0

    def test_usable_share_is_granted_without_counting(self, engine):
        share = ShareFactory(max_access=3)

        decision = engine.resolve_access(share.share_token, AccessType.DOWNLOAD)

        assert decision.granted
        assert decision.share.pk == share.pk
        share.refresh_from_db()
        assert share.access_count == 0

    def test_revoked_share_is_denied(self, engine):
        share = ShareFactory()
        share.deactivate(DeactivationReason.REVOKED, NOW)

        decision = engine.resolve_access(share.share_token, AccessType.VIEW)

        assert decision.reason == DenialReason.REVOKED_OR_EXHAUSTED

    def test_expired_share_is_denied_and_deactivated(self, engine):
        share = ShareFactory(expires_at=NOW - timedelta(minutes=5))

        decision = engine.resolve_access(share.share_token, AccessType.VIEW)

        assert decision.reason == DenialReason.EXPIRED
        share.refresh_from_db()
        assert share.is_active is False
        assert share.deactivation_reason == DeactivationReason.EXPIRED

    def test_expired_share_keeps_reporting_expired(self, engine):
        share = ShareFactory(expires_at=NOW - timedelta(minutes=5))
        engine.resolve_access(share.share_token, AccessType.VIEW)

        decision = engine.resolve_access(share.share_token, AccessType.VIEW)

        assert decision.reason == DenialReason.EXPIRED

    def test_exhausted_share_is_denied_and_deactivated(self, engine):
        share = ShareFactory(max_access=2, access_count=2)

        decision = engine.resolve_access(share.share_token, AccessType.VIEW)

        assert decision.reason == DenialReason.ACCESS_LIMIT_REACHED
        share.refresh_from_db()
        assert share.is_active is False
        assert share.deactivation_reason == DeactivationReason.EXHAUSTED

    def test_download_on_view_only_is_denied_without_state_change(self, engine):
        share = ShareFactory(permission="VIEW_ONLY")

        decision = engine.resolve_access(share.share_token, AccessType.DOWNLOAD)

        assert decision.reason == DenialReason.PERMISSION_DENIED
        share.refresh_from_db()
        assert share.is_active is True
        assert engine.resolve_access(share.share_token, AccessType.VIEW).granted

    def test_expiry_is_reported_before_permission(self, engine):
        share = ShareFactory(
            permission="VIEW_ONLY",
            expires_at=NOW - timedelta(seconds=1),
        )

        decision = engine.resolve_access(share.share_token, AccessType.DOWNLOAD)

        assert decision.reason == DenialReason.EXPIRED

    def test_accepts_access_type_strings(self, engine):
        share = ShareFactory()

        assert engine.resolve_access(share.share_token, "VIEW").granted


@pytest.mark.django_db
class TestDeniedAttemptRecording:
    def test_denial_is_recorded_with_reason(self, engine):
        share = ShareFactory(permission="VIEW_ONLY")

        engine.resolve_access(share.share_token, AccessType.DOWNLOAD, "203.0.113.7", "curl/8.0")

        row = ShareAccess.objects.get(share=share)
        assert row.granted is False
        assert row.denial_reason == "PERMISSION_DENIED"
        assert row.accessor_ip == "203.0.113.7"
        assert row.user_agent == "curl/8.0"
        assert row.accessed_at == NOW

    def test_recording_can_be_disabled(self, clock):
        engine = SharePolicyEngine(config=SharingConfig(record_denied_access=False), clock=clock)
        share = ShareFactory(expires_at=NOW - timedelta(days=1))

        engine.resolve_access(share.share_token, AccessType.VIEW)

        assert ShareAccess.objects.count() == 0
        share.refresh_from_db()
        assert share.is_active is False

    def test_grants_are_not_recorded_by_the_engine(self, engine):
        share = ShareFactory()

        engine.resolve_access(share.share_token, AccessType.VIEW)

        assert ShareAccess.objects.count() == 0

    def test_denials_go_to_security_log_with_masked_token(self, engine):
        share = ShareFactory(expires_at=NOW - timedelta(days=1))

        with patch("sharing.services.policy.security_logger") as security_logger:
            engine.resolve_access(share.share_token, AccessType.VIEW, "198.51.100.4")

        security_logger.info.assert_called_once()
        extra = security_logger.info.call_args.kwargs["extra"]
        assert extra["reason"] == "EXPIRED"
        assert extra["token_prefix"] == f"{share.share_token[:8]}..."
        assert share.share_token not in str(security_logger.info.call_args)


@pytest.mark.django_db
class TestPeekAccess:
    def test_peek_never_writes(self, engine):
        share = ShareFactory(expires_at=NOW - timedelta(hours=1))

        decision = engine.peek_access(share.share_token)

        assert decision.reason == DenialReason.EXPIRED
        share.refresh_from_db()
        assert share.is_active is True
        assert ShareAccess.objects.count() == 0

    def test_peek_grants_usable_share(self, engine):
        share = ShareFactory(max_access=4, access_count=1)

        decision = engine.peek_access(share.share_token)

        assert decision.granted
        assert decision.share.remaining_accesses == 3

    def test_peek_unknown_token(self, engine):
        assert engine.peek_access("nope").reason == DenialReason.NOT_FOUND

    def test_peek_ignores_permission(self, engine):
        share = ShareFactory(permission="VIEW_ONLY")

        assert engine.peek_access(share.share_token).granted


@pytest.mark.django_db
class TestAccessDecisionErrors:
    def test_to_error_maps_reason_to_type(self, engine):
        expired = ShareFactory(expires_at=NOW - timedelta(days=1))
        spent = ShareFactory(max_access=1, access_count=1)

        assert isinstance(engine.resolve_access("nope", "VIEW").to_error(), ShareTokenNotFoundError)
        assert isinstance(
            engine.resolve_access(expired.share_token, "VIEW").to_error(), ShareExpiredError
        )
        assert isinstance(
            engine.resolve_access(spent.share_token, "VIEW").to_error(), AccessLimitReachedError
        )

    def test_public_rendering_hides_the_reason(self, engine):
        expired = ShareFactory(expires_at=NOW - timedelta(days=1))
        not_found = engine.resolve_access("nope", "VIEW").to_error().to_public_dict()
        gone = engine.resolve_access(expired.share_token, "VIEW").to_error().to_public_dict()

        assert not_found == gone
        assert not_found["error"] == PUBLIC_DENIAL_MESSAGE

    def test_granted_decision_has_no_error(self, engine):
        decision = engine.resolve_access(ShareFactory().share_token, "VIEW")

        with pytest.raises(ValueError):
            decision.to_error()
