"""
Classifier component - late vs upcoming partition of scheduled items.

Invariants:
- Late means now - scheduled_at_utc > grace (strict); the boundary is upcoming
- Partition is exhaustive and disjoint over scheduled items
- Relative input order is preserved in both partitions
- Items not in "scheduled" status are skipped, never raised on
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from content_auditor.domain.entities import ScheduledItem

from .models import Classification, ClassifiedItem, ClassifyInput


def lateness_of(item: ScheduledItem, now: datetime) -> timedelta:
    """How far past its scheduled time the item is (negative if still ahead)."""
    return now - item.scheduled_at_utc


def is_late(lateness: timedelta, grace: timedelta) -> bool:
    return lateness > grace


def classify(
    items: Iterable[ScheduledItem],
    now: datetime,
    grace: timedelta,
) -> Classification:
    """
    Partition scheduled items into late and upcoming.

    Args:
        items: Items from the repository, normally already filtered to
            "scheduled" and ordered ascending by scheduled time.
        now: Audit instant (UTC).
        grace: Tolerance before an item counts as late.

    Returns:
        Classification with both partitions in input order.
    """
    late: list[ClassifiedItem] = []
    upcoming: list[ClassifiedItem] = []
    skipped: list[str] = []

    for item in items:
        if item.status != "scheduled":
            skipped.append(item.id)
            continue

        lateness = lateness_of(item, now)
        classified = ClassifiedItem(item=item, lateness=lateness)
        if is_late(lateness, grace):
            late.append(classified)
        else:
            upcoming.append(classified)

    return Classification(
        late=tuple(late),
        upcoming=tuple(upcoming),
        skipped=tuple(skipped),
    )


def run(inp: ClassifyInput) -> Classification:
    """Main entry point for the classifier component."""
    return classify(inp.items, inp.now, inp.grace)
