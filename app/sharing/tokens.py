"""
Share token generation.

Tokens are 128 bits from the operating system CSPRNG, encoded as
URL-safe base64 without padding (22 characters).

Usage:
    from sharing.tokens import ShareTokenGenerator

    token = ShareTokenGenerator().generate_token()
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable

from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

# 16 bytes = 128 bits of entropy
TOKEN_BYTES = 16

# A collision at 128 bits is astronomically unlikely; a handful of
# attempts only guards against a broken random source.
MAX_GENERATION_ATTEMPTS = 5


def _token_in_use(token: str) -> bool:
    from sharing.models import Share

    return Share.objects.filter(share_token=token).exists()


class ShareTokenGenerator:
    """
    Produce unguessable share tokens that no existing share uses.

    Args:
        exists: Predicate telling whether a token is already taken.
            Defaults to a lookup against the Share table.
        random_source: Callable returning a fresh random token.
    """

    def __init__(
        self,
        exists: Callable[[str], bool] | None = None,
        random_source: Callable[[], str] | None = None,
    ):
        self.exists = exists or _token_in_use
        self.random_source = random_source or self.random_token

    @staticmethod
    def random_token() -> str:
        return secrets.token_urlsafe(TOKEN_BYTES)

    def generate_token(self) -> str:
        """
        Return a token that is not in use.

        Raises:
            ConflictError: If every attempt collided
        """
        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            token = self.random_source()
            if not self.exists(token):
                return token
            logger.warning(
                f"Share token collision on attempt {attempt}, regenerating",
                extra={"attempt": attempt},
            )
        raise ConflictError(
            "Could not generate a unique share token",
            error_code="TOKEN_GENERATION_FAILED",
            details={"attempts": MAX_GENERATION_ATTEMPTS},
        )
