"""
Reconciler component - corrective transitions for one scheduled item.

Handles "publish now" and "bump by duration" requests coming from the
audit screen.

Invariants:
- Malformed requests are rejected before any authorize or lookup call
- Authorization is checked before the item is read
- Missing or already-transitioned items yield "noop", not an error
- At most one conditional write per call
- A lost optimistic-concurrency race yields "noop"
- Non-positive bump durations fall back to the policy default
- Store failures and out-of-range bumps come back as "error", never raised
"""

from __future__ import annotations

from datetime import datetime

from content_auditor.domain.entities import (
    TRANSITION_KINDS,
    ItemStatus,
    ScheduledItem,
    TransitionResult,
)
from content_auditor.domain.errors import LookupFailedError, MutationError, StaleItemError
from content_auditor.domain.policy import DEFAULT_POLICY, AuditPolicy

from .models import ReconcileError, TransitionOutput, TransitionRequest
from .ports import AuthorizationPort, ClockPort, ItemLookupPort, MutationSinkPort


def _failed(
    req: TransitionRequest,
    error: ReconcileError,
) -> TransitionOutput:
    return TransitionOutput(
        result="error",
        item_id=req.item_id,
        errors=[error],
        success=False,
    )


def _noop(req: TransitionRequest) -> TransitionOutput:
    return TransitionOutput(result="noop", item_id=req.item_id)


def validate_request(req: TransitionRequest) -> list[ReconcileError]:
    """Shape checks that need no collaborator."""
    errors: list[ReconcileError] = []

    if not isinstance(req.item_id, str) or not req.item_id.strip():
        errors.append(
            ReconcileError(
                code="INVALID_INPUT",
                message="Item id is required",
                field="item_id",
            )
        )

    if req.kind not in TRANSITION_KINDS:
        errors.append(
            ReconcileError(
                code="INVALID_INPUT",
                message=f"Unknown transition kind: {req.kind!r}",
                field="kind",
            )
        )

    return errors


class ReconcilerComponent:
    """Component applying one authorized transition to one scheduled item."""

    def __init__(
        self,
        lookup: ItemLookupPort,
        authorizer: AuthorizationPort,
        sink: MutationSinkPort,
        clock: ClockPort,
        policy: AuditPolicy | None = None,
    ) -> None:
        self._lookup = lookup
        self._authorizer = authorizer
        self._sink = sink
        self._clock = clock
        self._policy = policy or DEFAULT_POLICY

    def run(self, req: TransitionRequest) -> TransitionOutput:
        """Validate, authorize, look up, then dispatch on the request kind."""
        errors = validate_request(req)
        if errors:
            return TransitionOutput(
                result="error",
                item_id=req.item_id,
                errors=errors,
                success=False,
            )

        try:
            authorized = self._authorizer.verify(
                req.authorization_token, req.item_id, req.kind
            )
        except TimeoutError:
            return _failed(
                req,
                ReconcileError(
                    code="TIMEOUT",
                    message="Authorization check timed out",
                    field="authorization_token",
                ),
            )

        if not authorized:
            return _failed(
                req,
                ReconcileError(
                    code="AUTHORIZATION_FAILED",
                    message="Security check failed",
                    field="authorization_token",
                ),
            )

        try:
            item = self._lookup.get(req.item_id)
        except TimeoutError:
            return _failed(
                req,
                ReconcileError(
                    code="TIMEOUT",
                    message="Item lookup timed out",
                    field="item_id",
                ),
            )
        except LookupFailedError as e:
            return _failed(
                req,
                ReconcileError(
                    code="LOOKUP_FAILED",
                    message=str(e) or "Item store could not be read",
                    field="item_id",
                ),
            )

        # Gone, or already handled by someone else
        if item is None or item.status != "scheduled":
            return _noop(req)

        if req.kind == "publish_now":
            return self.run_publish_now(req, item)
        return self.run_bump(req, item)

    def run_publish_now(
        self,
        req: TransitionRequest,
        item: ScheduledItem,
    ) -> TransitionOutput:
        """Publish immediately; the publish time becomes now."""
        now = self._clock.now_utc()
        return self._apply(
            req,
            item,
            new_status="published",
            new_scheduled_at_utc=now,
            on_success="published",
        )

    def run_bump(
        self,
        req: TransitionRequest,
        item: ScheduledItem,
    ) -> TransitionOutput:
        """Move the scheduled time forward; status stays scheduled."""
        bump = self._policy.normalize_bump(req.bump_duration)
        try:
            new_time = item.scheduled_at_utc + bump
        except OverflowError:
            return _failed(
                req,
                ReconcileError(
                    code="INVALID_INPUT",
                    message="Bump moves the schedule out of range",
                    field="bump_duration",
                ),
            )
        return self._apply(
            req,
            item,
            new_status=None,
            new_scheduled_at_utc=new_time,
            on_success="bumped",
        )

    def _apply(
        self,
        req: TransitionRequest,
        item: ScheduledItem,
        *,
        new_status: ItemStatus | None,
        new_scheduled_at_utc: datetime,
        on_success: TransitionResult,
    ) -> TransitionOutput:
        try:
            self._sink.apply(
                item.id,
                expected=item,
                new_status=new_status,
                new_scheduled_at_utc=new_scheduled_at_utc,
            )
        except StaleItemError:
            return _noop(req)
        except MutationError as e:
            return _failed(
                req,
                ReconcileError(
                    code="MUTATION_FAILED",
                    message=str(e) or "Item store rejected the update",
                    field="item_id",
                ),
            )
        except TimeoutError:
            return _failed(
                req,
                ReconcileError(
                    code="TIMEOUT",
                    message="Item store timed out",
                    field="item_id",
                ),
            )

        return TransitionOutput(
            result=on_success,
            item_id=item.id,
            new_scheduled_at_utc=new_scheduled_at_utc,
        )


# --- Component Entry Points ---


def reconcile(
    req: TransitionRequest,
    *,
    lookup: ItemLookupPort,
    authorizer: AuthorizationPort,
    sink: MutationSinkPort,
    clock: ClockPort,
    policy: AuditPolicy | None = None,
) -> TransitionOutput:
    """
    Apply one transition request.

    Args:
        req: The transition to apply.
        lookup: Item lookup port.
        authorizer: Single-use token check.
        sink: Conditional write port.
        clock: Time source for "publish now".
        policy: Optional policy (default bump duration).

    Returns:
        TransitionOutput with result published, bumped, noop or error.
    """
    component = ReconcilerComponent(
        lookup=lookup,
        authorizer=authorizer,
        sink=sink,
        clock=clock,
        policy=policy,
    )
    return component.run(req)

