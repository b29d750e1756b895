"""
Protocol definitions for generic infrastructure services.

Available Protocols:
    Clock: Source of the current time

Usage:
    from core.protocols import Clock

    class FrozenClock:
        def __init__(self, instant):
            self.instant = instant

        def now(self):
            return self.instant

    # FrozenClock is a valid Clock without explicit inheritance
    clock: Clock = FrozenClock(timezone.now())

Note:
    - @runtime_checkable allows isinstance() checks
    - For domain-specific protocols (email, file store), see toolkit.protocols
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@runtime_checkable
class Clock(Protocol):
    """
    Protocol for time sources.

    Services take a Clock at construction instead of calling
    timezone.now() directly, so expiry and retention logic can be
    driven from tests.
    """

    def now(self) -> datetime:
        """
        Return the current time.

        Returns:
            Timezone-aware datetime
        """
        ...
