"""Classifier component input/output models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from content_auditor.domain.entities import ScheduledItem


@dataclass(frozen=True)
class ClassifiedItem:
    """A scheduled item with its lateness at audit time.

    Negative lateness means the item is still in the future.
    """

    item: ScheduledItem
    lateness: timedelta

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def scheduled_at_utc(self) -> datetime:
        return self.item.scheduled_at_utc


@dataclass(frozen=True)
class ClassifyInput:
    """Input for a classification pass."""

    items: tuple[ScheduledItem, ...]
    now: datetime
    grace: timedelta


@dataclass(frozen=True)
class Classification:
    """Late and upcoming partitions, each in input order."""

    late: tuple[ClassifiedItem, ...] = ()
    upcoming: tuple[ClassifiedItem, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.late) + len(self.upcoming)
