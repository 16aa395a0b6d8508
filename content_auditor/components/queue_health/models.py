"""Queue health component input/output models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from content_auditor.domain.entities import QueueEntry

DEFAULT_TRIGGER_HOOK = "publish-trigger"


@dataclass(frozen=True)
class InspectQueueInput:
    """Input for a queue inspection."""

    entries: tuple[QueueEntry, ...]
    hook: str = DEFAULT_TRIGGER_HOOK


@dataclass(frozen=True)
class QueueHealthSummary:
    """Observed publish-trigger backlog. Advisory only."""

    total_pending_triggers: int = 0
    next_trigger_at_utc: datetime | None = None
    trigger_entries: tuple[QueueEntry, ...] = ()

    @property
    def is_idle(self) -> bool:
        """No publish trigger is pending."""
        return self.total_pending_triggers == 0
