"""Reconciler component port definitions - protocols for dependencies."""

from datetime import datetime
from typing import Protocol

from content_auditor.domain.entities import ItemStatus, ScheduledItem, TransitionKind


class ItemLookupPort(Protocol):
    """Protocol for reading one item from the content repository."""

    def get(self, item_id: str) -> ScheduledItem | None:
        """Retrieve an item by ID.

        Raises LookupFailedError if the store cannot be read, TimeoutError
        if it does not answer in time.
        """
        ...


class AuthorizationPort(Protocol):
    """Protocol for single-use action token checks."""

    def verify(self, token: str, item_id: str, kind: TransitionKind) -> bool:
        """
        Check a token for (item_id, kind) and consume it.

        A second call with the same token must return False.
        """
        ...


class MutationSinkPort(Protocol):
    """Protocol for conditional single-item writes."""

    def apply(
        self,
        item_id: str,
        *,
        expected: ScheduledItem,
        new_status: ItemStatus | None = None,
        new_scheduled_at_utc: datetime | None = None,
    ) -> None:
        """
        Write the new fields only if the stored item still matches `expected`.

        Raises:
            StaleItemError: The stored item no longer matches.
            MutationError: The store rejected the write.
        """
        ...


class ClockPort(Protocol):
    """Protocol for time operations."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...
