"""
Audit policy: the clock-independent half of Clock/Policy.

A frozen value threaded explicitly into the classifier, the queue
inspector and the reconciler, so each call can run under its own policy.
It also carries the operator role to capability table used by the admin
routes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta

from content_auditor.rules.models import DEFAULT_ROLE_CAPABILITIES, AuditRules

EDIT_CAPABILITY = "edit_posts"
PUBLISH_CAPABILITY = "publish_posts"


def _capability_table(raw: Mapping[str, Iterable[str]]) -> dict[str, frozenset[str]]:
    return {role: frozenset(caps) for role, caps in raw.items()}


@dataclass(frozen=True)
class AuditPolicy:
    """Grace window, transition defaults and operator capabilities."""

    grace: timedelta = timedelta(minutes=5)
    default_bump: timedelta = timedelta(minutes=60)
    max_scheduled_items: int = 200
    publish_trigger_hook: str = "publish-trigger"
    # Empty means every type
    type_tags: tuple[str, ...] = ()
    role_capabilities: dict[str, frozenset[str]] = field(
        default_factory=lambda: _capability_table(DEFAULT_ROLE_CAPABILITIES),
        hash=False,
    )

    def grace_period(self) -> timedelta:
        return self.grace

    def normalize_bump(self, duration: timedelta | None) -> timedelta:
        """Non-positive or missing bump durations fall back to the default."""
        if duration is None or duration <= timedelta(0):
            return self.default_bump
        return duration

    def allows(self, roles: Iterable[str], capability: str) -> bool:
        """True if any of the roles grants the capability."""
        return any(capability in self.role_capabilities.get(r, ()) for r in roles)


DEFAULT_POLICY = AuditPolicy()


def policy_from_rules(rules: AuditRules | None) -> AuditPolicy:
    """Build the policy from validated rules; None yields defaults."""
    if rules is None:
        return DEFAULT_POLICY

    return AuditPolicy(
        grace=timedelta(seconds=rules.scheduling.grace_seconds),
        default_bump=timedelta(minutes=rules.scheduling.default_bump_minutes),
        max_scheduled_items=rules.scheduling.max_scheduled_items,
        publish_trigger_hook=rules.queue.publish_trigger_hook,
        type_tags=tuple(rules.scheduling.type_tags),
        role_capabilities=_capability_table(rules.access.role_capabilities),
    )
