"""
Clock -- injectable time source for the loader.

Two places ask for "now": the loader driver stamps ``started_at`` on every
run, and the date normalizer substitutes the local wall-clock time for a
transaction timestamp it cannot read.  Both take a Clock so tests can pin
that value.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """
    Time source.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``local_now()`` is the same instant as naive host-local time,
          the form in which transaction timestamps are stored.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def local_now(self) -> datetime:
        """Current wall-clock time in the host timezone, without tzinfo."""
        return self.now().astimezone().replace(tzinfo=None)


class SystemClock(Clock):
    """Reads the system clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Always returns the instant it was built with (noon UTC, 2024-01-01 by default)."""

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._fixed_time
