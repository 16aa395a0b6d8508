"""Human-readable labels for the audit screen."""

from __future__ import annotations

from datetime import timedelta

from content_auditor.domain.entities import TransitionResult

RESULT_NOTICES: dict[str, str] = {
    "published": "Selected post has been published now.",
    "bumped": "Selected post has had its schedule bumped.",
    "noop": "No posts were changed. Possibly nothing was selected.",
    "error": "Something went wrong. Check permissions or logs if this keeps happening.",
}

NO_TRIGGERS_NOTICE = (
    "No publish trigger events found. Either nothing is scheduled or the scheduler is asleep."
)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_age(lateness: timedelta) -> str:
    """Rough lateness label: the largest whole unit only."""
    seconds = int(lateness.total_seconds())
    if seconds <= 0:
        return "in the future"

    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{_plural(days, 'day')} late"
    if hours > 0:
        return f"{_plural(hours, 'hour')} late"
    if minutes > 0:
        return f"{_plural(minutes, 'minute')} late"
    return "seconds late"


def result_notice(result: TransitionResult | str) -> str:
    """Notice shown after a transition; unknown codes read as errors."""
    return RESULT_NOTICES.get(result, RESULT_NOTICES["error"])
