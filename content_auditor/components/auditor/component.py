"""
Auditor component - read-only missed-schedule audit.

Composes the classifier and the queue health inspector over one snapshot
and attaches advisory signals. Advisories describe what was observed;
nothing here acts on them.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from content_auditor.components.classifier import Classification, classify
from content_auditor.components.queue_health import (
    DEFAULT_TRIGGER_HOOK,
    QueueHealthSummary,
    inspect,
)
from content_auditor.domain.entities import QueueEntry, ScheduledItem
from content_auditor.domain.policy import DEFAULT_POLICY, AuditPolicy

from .models import Advisory, AuditReport, RunAuditInput
from .ports import ClockPort, ItemSourcePort, QueueSourcePort


def advisories_for(
    classification: Classification,
    queue_health: QueueHealthSummary,
    now: datetime,
    grace: timedelta,
    item_count: int,
    item_limit: int | None = None,
) -> tuple[Advisory, ...]:
    """Derive advisory codes from one audit."""
    found: list[Advisory] = []

    if classification.late:
        found.append("late_items_present")

    # Either nothing is scheduled or the scheduler is asleep
    if classification.total > 0 and queue_health.is_idle:
        found.append("no_pending_triggers")

    next_trigger = queue_health.next_trigger_at_utc
    if next_trigger is not None and now - next_trigger > grace:
        found.append("trigger_overdue")

    if item_limit is not None and item_count >= item_limit:
        found.append("item_limit_reached")

    return tuple(found)


def run_audit(
    now: datetime,
    grace: timedelta,
    items: Sequence[ScheduledItem],
    queue_entries: Sequence[QueueEntry],
    *,
    hook: str = DEFAULT_TRIGGER_HOOK,
    item_limit: int | None = None,
) -> AuditReport:
    """
    Run the composite audit over caller-supplied snapshots.

    Args:
        now: Audit instant (UTC).
        grace: Tolerance before an item counts as late.
        items: Scheduled items from the repository.
        queue_entries: Raw deferred-execution queue snapshot.
        hook: Hook name that marks publish triggers.
        item_limit: Cap the item source was queried with, if any.

    Returns:
        AuditReport with late, upcoming, queue health and advisories.
    """
    classification = classify(items, now, grace)
    queue_health = inspect(queue_entries, hook)

    return AuditReport(
        generated_at_utc=now,
        grace=grace,
        late=classification.late,
        upcoming=classification.upcoming,
        queue_health=queue_health,
        advisories=advisories_for(
            classification,
            queue_health,
            now,
            grace,
            item_count=len(items),
            item_limit=item_limit,
        ),
    )


def run(inp: RunAuditInput) -> AuditReport:
    """Main entry point for the auditor component."""
    return run_audit(inp.now, inp.grace, inp.items, inp.queue_entries, hook=inp.hook)


class AuditorComponent:
    """Fetches snapshots from the sources and runs the audit."""

    def __init__(
        self,
        items: ItemSourcePort,
        queue: QueueSourcePort,
        clock: ClockPort,
        policy: AuditPolicy | None = None,
    ) -> None:
        self._items = items
        self._queue = queue
        self._clock = clock
        self._policy = policy or DEFAULT_POLICY

    def run(self) -> AuditReport:
        limit = self._policy.max_scheduled_items
        items = self._items.list_scheduled(limit, type_tags=self._policy.type_tags)
        entries = self._queue.list_entries()

        return run_audit(
            self._clock.now_utc(),
            self._policy.grace_period(),
            items,
            entries,
            hook=self._policy.publish_trigger_hook,
            item_limit=limit,
        )
