"""Auditor component port definitions - protocols for dependencies."""

from datetime import datetime
from typing import Protocol

from content_auditor.domain.entities import QueueEntry, ScheduledItem


class ItemSourcePort(Protocol):
    """Protocol for listing scheduled items."""

    def list_scheduled(
        self,
        max_count: int = 200,
        type_tags: tuple[str, ...] = (),
    ) -> list[ScheduledItem]:
        """Scheduled items ascending by scheduled time, at most max_count.

        A non-empty type_tags restricts the listing to those content types.
        """
        ...


class QueueSourcePort(Protocol):
    """Protocol for reading the deferred-execution schedule."""

    def list_entries(self) -> list[QueueEntry]:
        """Return the raw queue snapshot."""
        ...


class ClockPort(Protocol):
    """Protocol for time operations."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...
