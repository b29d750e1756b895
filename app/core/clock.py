"""Default Clock implementations."""

from __future__ import annotations

from datetime import datetime

from django.utils import timezone


class SystemClock:
    """Wall clock backed by django.utils.timezone.now (aware, UTC)."""

    def now(self) -> datetime:
        return timezone.now()


class FixedClock:
    """
    Clock pinned to a single instant.

    Useful for management commands and tests that need several
    services to agree on "now".

    Example:
        clock = FixedClock(timezone.now())
        engine = SharePolicyEngine(clock=clock)
        clock.advance(timedelta(hours=2))
    """

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta) -> datetime:
        self.instant = self.instant + delta
        return self.instant
