"""Fake Time implementation for testing.

FakeTime returns a fixed instant so snapshot ids and merge-state timestamps are
deterministic.
"""

from datetime import UTC, datetime, timedelta

from wtt.core.time.abc import Time

DEFAULT_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


class FakeTime(Time):
    """Fake clock that only moves when a test advances it.

    This class has NO public setup methods. The starting instant is provided via
    constructor; advance() exists for tests that need the clock to move.
    """

    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        """Create FakeTime frozen at `now`."""
        self._now = now
        self._now_calls = 0

    def now(self) -> datetime:
        self._now_calls += 1
        return self._now

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by delta."""
        self._now = self._now + delta

    @property
    def now_calls(self) -> int:
        """Read-only access to how often now() was called."""
        return self._now_calls
