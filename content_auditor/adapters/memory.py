"""In-memory item store and queue snapshot adapters.

Suitable for single-process deployments and tests. The item store
implements lookup, bounded listing and conditional writes.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from content_auditor.domain.entities import ItemStatus, QueueEntry, ScheduledItem
from content_auditor.domain.errors import StaleItemError

logger = logging.getLogger(__name__)


class InMemoryItemRepo:
    """Item store with optimistic concurrency on (status, scheduled_at_utc)."""

    def __init__(self, items: list[ScheduledItem] | None = None) -> None:
        self._items: dict[str, ScheduledItem] = {}
        self._lock = threading.Lock()
        for item in items or []:
            self.add(item)

    def add(self, item: ScheduledItem) -> None:
        with self._lock:
            self._items[item.id] = item

    def get(self, item_id: str) -> ScheduledItem | None:
        with self._lock:
            item = self._items.get(item_id)
        return item.model_copy() if item else None

    def list_scheduled(
        self,
        max_count: int = 200,
        type_tags: tuple[str, ...] = (),
    ) -> list[ScheduledItem]:
        """Scheduled items, oldest first, capped at max_count."""
        with self._lock:
            scheduled = [
                i
                for i in self._items.values()
                if i.status == "scheduled" and (not type_tags or i.type_tag in type_tags)
            ]
        scheduled.sort(key=lambda i: i.scheduled_at_utc)
        return [i.model_copy() for i in scheduled[:max_count]]

    def apply(
        self,
        item_id: str,
        *,
        expected: ScheduledItem,
        new_status: ItemStatus | None = None,
        new_scheduled_at_utc: datetime | None = None,
    ) -> None:
        with self._lock:
            current = self._items.get(item_id)
            if (
                current is None
                or current.status != expected.status
                or current.scheduled_at_utc != expected.scheduled_at_utc
            ):
                raise StaleItemError(f"Item {item_id} changed since it was read")

            updates: dict[str, object] = {}
            if new_status is not None:
                updates["status"] = new_status
            if new_scheduled_at_utc is not None:
                updates["scheduled_at_utc"] = new_scheduled_at_utc
            self._items[item_id] = current.model_copy(update=updates)

        logger.debug("Item %s updated: %s", item_id, sorted(updates))

    def clear(self) -> None:
        """Clear all items - useful for testing."""
        with self._lock:
            self._items.clear()


class InMemoryQueue:
    """Snapshot of a deferred-execution schedule."""

    def __init__(self, entries: list[QueueEntry] | None = None) -> None:
        self._entries: list[QueueEntry] = list(entries or [])
        self._lock = threading.Lock()

    def add(self, due_at_utc: datetime, hook_name: str, payload_count: int = 1) -> QueueEntry:
        entry = QueueEntry(
            due_at_utc=due_at_utc,
            hook_name=hook_name,
            payload_count=payload_count,
        )
        with self._lock:
            self._entries.append(entry)
        return entry

    def list_entries(self) -> list[QueueEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
