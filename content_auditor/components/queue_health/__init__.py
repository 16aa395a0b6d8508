"""Queue health component - publish-trigger backlog of the deferred-execution queue."""

from .component import inspect, run, trigger_entries
from .models import DEFAULT_TRIGGER_HOOK, InspectQueueInput, QueueHealthSummary

__all__ = [
    # Entry points
    "run",
    "inspect",
    "trigger_entries",
    # Models
    "DEFAULT_TRIGGER_HOOK",
    "InspectQueueInput",
    "QueueHealthSummary",
]
