"""Clock abstraction for testing.

Snapshot ids and merge-state timestamps are derived from the clock, so tests
inject a fixed time instead of reading the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract clock operations for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
