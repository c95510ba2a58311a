"""
Clock -- Injectable time source.

Engines never read the clock.  Services that need "today" (the default
ledger range) or "now" (supplier transaction timestamps) receive a Clock
through their constructor so tests are deterministic.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_FIXED_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware."""

    def today(self) -> date:
        """Calendar day of ``now()``."""
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or _DEFAULT_FIXED_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
