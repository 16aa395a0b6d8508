"""Reconciler component input/output models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

from content_auditor.domain.entities import TransitionKind, TransitionResult

# --- Validation Error ---

ReconcileErrorCode = Literal[
    "INVALID_INPUT",
    "AUTHORIZATION_FAILED",
    "LOOKUP_FAILED",
    "MUTATION_FAILED",
    "TIMEOUT",
]


@dataclass(frozen=True)
class ReconcileError:
    """Reconciler error details."""

    code: ReconcileErrorCode
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class TransitionRequest:
    """A single corrective transition for one scheduled item.

    The authorization token is single-use and scoped to (item_id, kind).
    bump_duration is only read for "bump".
    """

    item_id: str
    kind: TransitionKind
    authorization_token: str
    bump_duration: timedelta | None = None


# --- Output Models ---


@dataclass(frozen=True)
class TransitionOutput:
    """Outcome of one reconcile call."""

    result: TransitionResult
    item_id: str
    errors: list[ReconcileError] = field(default_factory=list)
    success: bool = True
    new_scheduled_at_utc: datetime | None = None

    @property
    def authorization_failed(self) -> bool:
        return any(e.code == "AUTHORIZATION_FAILED" for e in self.errors)
