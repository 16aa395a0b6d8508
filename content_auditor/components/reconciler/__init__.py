"""Reconciler component - publish-now and bump transitions for scheduled items."""

from .component import ReconcilerComponent, reconcile, validate_request
from .models import (
    ReconcileError,
    ReconcileErrorCode,
    TransitionOutput,
    TransitionRequest,
)
from .ports import AuthorizationPort, ClockPort, ItemLookupPort, MutationSinkPort

__all__ = [
    # Entry point
    "reconcile",
    # Component
    "ReconcilerComponent",
    "validate_request",
    # Models
    "ReconcileError",
    "ReconcileErrorCode",
    "TransitionOutput",
    "TransitionRequest",
    # Ports
    "AuthorizationPort",
    "ClockPort",
    "ItemLookupPort",
    "MutationSinkPort",
]
