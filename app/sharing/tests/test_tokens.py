"""
Tests for share token generation.

These tests verify:
- Tokens are URL-safe and carry 128 bits of entropy
- No duplicates across a large batch
- Collisions with existing shares are regenerated, and give up eventually
"""

from __future__ import annotations

import re

import pytest

from core.exceptions import ConflictError
from sharing.tests.factories import ShareFactory
from sharing.tokens import MAX_GENERATION_ATTEMPTS, ShareTokenGenerator

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestRandomToken:
    def test_token_is_url_safe(self):
        token = ShareTokenGenerator.random_token()

        assert URL_SAFE.match(token)

    def test_token_encodes_sixteen_bytes(self):
        # 16 bytes -> 22 base64url characters without padding
        assert len(ShareTokenGenerator.random_token()) == 22

    def test_hundred_thousand_tokens_are_distinct(self):
        generator = ShareTokenGenerator(exists=lambda token: False)

        tokens = {generator.generate_token() for _ in range(100_000)}

        assert len(tokens) == 100_000


class TestCollisionHandling:
    def test_taken_token_is_regenerated(self):
        candidates = iter(["taken", "taken", "fresh"])
        generator = ShareTokenGenerator(
            exists=lambda token: token == "taken",
            random_source=lambda: next(candidates),
        )

        assert generator.generate_token() == "fresh"

    def test_gives_up_after_max_attempts(self):
        calls = []

        def always_same():
            calls.append(1)
            return "taken"

        generator = ShareTokenGenerator(exists=lambda token: True, random_source=always_same)

        with pytest.raises(ConflictError) as exc_info:
            generator.generate_token()

        assert exc_info.value.error_code == "TOKEN_GENERATION_FAILED"
        assert len(calls) == MAX_GENERATION_ATTEMPTS


@pytest.mark.django_db
class TestDatabaseLookup:
    def test_default_lookup_sees_existing_shares(self):
        existing = ShareFactory()
        candidates = iter([existing.share_token, "brand-new-token"])
        generator = ShareTokenGenerator(random_source=lambda: next(candidates))

        assert generator.generate_token() == "brand-new-token"
