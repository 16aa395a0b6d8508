from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# --- Enums / Literals ---
ItemStatus = Literal["scheduled", "published", "other"]
TransitionKind = Literal["publish_now", "bump"]
TransitionResult = Literal["published", "bumped", "noop", "error"]

TRANSITION_KINDS: tuple[str, ...] = ("publish_now", "bump")


# --- Content ---


class ScheduledItem(BaseModel):
    """A content item waiting for automatic publication.

    Owned by the external content repository. `title` is display only.
    """

    id: str
    scheduled_at_utc: datetime
    status: ItemStatus = "scheduled"
    type_tag: str = "post"
    author_id: str = ""
    title: str = ""

    @field_validator("scheduled_at_utc")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        # Naive timestamps from storage are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


# --- Deferred-execution queue ---


class QueueEntry(BaseModel):
    """One raw entry of the external deferred-execution schedule."""

    due_at_utc: datetime
    hook_name: str
    payload_count: int = Field(default=1)

    @field_validator("due_at_utc")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


# --- Access ---


class Operator(BaseModel):
    """An authenticated admin user; roles map to capabilities via the policy."""

    id: str
    roles: list[str] = Field(default_factory=list)
