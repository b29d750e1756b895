"""
Tests for core helpers, clocks and the service result wrapper.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.db import OperationalError
from django.test import RequestFactory

from core.clock import FixedClock, SystemClock
from core.decorators import translate_store_errors
from core.exceptions import NotFoundError, TransientStoreError
from core.helpers import format_file_size, get_client_ip, get_user_agent, mask_token
from core.services import ServiceResult


class TestRequestHelpers:
    def test_client_ip_prefers_first_forwarded_address(self):
        request = RequestFactory().get(
            "/", HTTP_X_FORWARDED_FOR="203.0.113.5, 10.0.0.1", REMOTE_ADDR="10.0.0.1"
        )

        assert get_client_ip(request) == "203.0.113.5"

    def test_client_ip_falls_back_to_remote_addr(self):
        request = RequestFactory().get("/", REMOTE_ADDR="198.51.100.2")

        assert get_client_ip(request) == "198.51.100.2"

    def test_user_agent_is_truncated(self):
        request = RequestFactory().get("/", HTTP_USER_AGENT="x" * 600)

        assert len(get_user_agent(request)) == 512


class TestFormatting:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (512, "512 B"),
            (1536, "1.5 KB"),
            (2_621_440, "2.5 MB"),
            (3 * 1024**3, "3.0 GB"),
            (None, "unknown size"),
        ],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_mask_token_keeps_prefix_only(self):
        assert mask_token("Zx8k2PqLm3abcdefghijkl") == "Zx8k2PqL..."
        assert mask_token("") == ""


class TestClocks:
    def test_system_clock_is_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_fixed_clock_advances(self):
        start = datetime(2030, 1, 1, tzinfo=dt_timezone.utc)
        clock = FixedClock(start)

        clock.advance(timedelta(minutes=5))

        assert clock.now() == start + timedelta(minutes=5)


class TestTranslateStoreErrors:
    def test_operational_error_becomes_transient(self):
        @translate_store_errors
        def locked():
            raise OperationalError("database is locked")

        with pytest.raises(TransientStoreError) as exc_info:
            locked()

        assert exc_info.value.retryable is True
        assert exc_info.value.http_status == 503
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_other_errors_propagate(self):
        @translate_store_errors
        def boom():
            raise ValueError("nope")

        with pytest.raises(ValueError):
            boom()


class TestServiceResult:
    def test_success_is_truthy(self):
        result = ServiceResult.success(42)

        assert result
        assert result.to_response() == {"success": True, "data": 42}

    def test_failure_response(self):
        result = ServiceResult.failure("Share not found", error_code="SHARE_NOT_FOUND")

        assert not result
        assert result.to_response() == {
            "success": False,
            "error": "Share not found",
            "error_code": "SHARE_NOT_FOUND",
        }

    def test_from_application_error_keeps_code(self):
        result = ServiceResult.from_exception(NotFoundError("gone", error_code="FILE_NOT_FOUND"))

        assert result.error == "gone"
        assert result.error_code == "FILE_NOT_FOUND"


@pytest.mark.django_db
class TestHealthCheck:
    def test_reports_database_connected(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}
