"""Auditor component input/output models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from content_auditor.components.classifier import ClassifiedItem
from content_auditor.components.queue_health import QueueHealthSummary
from content_auditor.domain.entities import QueueEntry, ScheduledItem

# --- Advisory Codes ---

Advisory = Literal[
    "late_items_present",
    "no_pending_triggers",
    "trigger_overdue",
    "item_limit_reached",
]


# --- Input Models ---


@dataclass(frozen=True)
class RunAuditInput:
    """Snapshot to audit."""

    now: datetime
    grace: timedelta
    items: tuple[ScheduledItem, ...]
    queue_entries: tuple[QueueEntry, ...] = ()
    hook: str = "publish-trigger"


# --- Output Models ---


@dataclass(frozen=True)
class AuditReport:
    """Read-only audit view: late, upcoming and queue health."""

    generated_at_utc: datetime
    grace: timedelta
    late: tuple[ClassifiedItem, ...]
    upcoming: tuple[ClassifiedItem, ...]
    queue_health: QueueHealthSummary
    advisories: tuple[Advisory, ...] = ()

    @property
    def has_late_items(self) -> bool:
        return len(self.late) > 0
