"""Auditor component - read-only missed-schedule audit over items and queue."""

from .component import AuditorComponent, advisories_for, run, run_audit
from .models import Advisory, AuditReport, RunAuditInput
from .ports import ClockPort, ItemSourcePort, QueueSourcePort

__all__ = [
    # Entry points
    "run",
    "run_audit",
    # Component
    "AuditorComponent",
    "advisories_for",
    # Models
    "Advisory",
    "AuditReport",
    "RunAuditInput",
    # Ports
    "ClockPort",
    "ItemSourcePort",
    "QueueSourcePort",
]
