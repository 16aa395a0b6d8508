"""
Queue health component - publish-trigger summary of the deferred-execution queue.

Read-only diagnostic: reports what the queue holds, never whether the
scheduler behind it is working.

Invariants:
- Only entries tagged with the trigger hook are counted
- Entries with a negative payload count are ignored
- Empty input yields zero triggers and no next trigger time
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from content_auditor.domain.entities import QueueEntry

from .models import DEFAULT_TRIGGER_HOOK, InspectQueueInput, QueueHealthSummary


def trigger_entries(
    entries: Iterable[QueueEntry],
    hook: str = DEFAULT_TRIGGER_HOOK,
) -> list[QueueEntry]:
    """Entries tagged with the trigger hook, in input order."""
    return [e for e in entries if e.hook_name == hook and e.payload_count >= 0]


def inspect(
    entries: Iterable[QueueEntry],
    hook: str = DEFAULT_TRIGGER_HOOK,
) -> QueueHealthSummary:
    """
    Summarize pending publish triggers.

    Args:
        entries: Raw queue snapshot.
        hook: Hook name that marks publish triggers.

    Returns:
        QueueHealthSummary with total payload count and earliest due time.
    """
    matching = trigger_entries(entries, hook)

    total = 0
    next_due: datetime | None = None
    for entry in matching:
        total += entry.payload_count
        if next_due is None or entry.due_at_utc < next_due:
            next_due = entry.due_at_utc

    return QueueHealthSummary(
        total_pending_triggers=total,
        next_trigger_at_utc=next_due,
        trigger_entries=tuple(matching),
    )


def run(inp: InspectQueueInput) -> QueueHealthSummary:
    """Main entry point for the queue health component."""
    return inspect(inp.entries, inp.hook)
