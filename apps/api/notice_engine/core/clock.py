"""Injectable time source.

All deadline math reads "now" through a Clock so tests can freeze and
advance time instead of relying on wall-clock tolerance windows.
All instants are timezone-aware UTC.
"""

from datetime import datetime, timedelta, timezone


class Clock:
    """Wall-clock time source (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """Clock pinned to a fixed instant until explicitly advanced."""

    def __init__(self, at: datetime):
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._now = at.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """Move time forward by a timedelta expressed as keyword arguments."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


system_clock = Clock()
