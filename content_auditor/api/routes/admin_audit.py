"""
Admin Scheduled Content Audit API Routes.

Provides the missed-schedule audit view and the two corrective actions
(publish now, bump schedule) for late items.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from content_auditor.adapters.action_tokens import SignedActionTokens
from content_auditor.adapters.clock import SystemClock
from content_auditor.adapters.queue_file import JsonFileQueue
from content_auditor.adapters.sqlite_items import SQLiteItemRepo
from content_auditor.api.deps import (
    get_action_tokens,
    get_clock,
    get_item_repo,
    get_policy,
    get_queue,
    require_capability,
)
from content_auditor.api.presenters import NO_TRIGGERS_NOTICE, format_age, result_notice
from content_auditor.components.auditor import AuditorComponent, AuditReport
from content_auditor.components.classifier import ClassifiedItem
from content_auditor.components.reconciler import (
    TransitionOutput,
    TransitionRequest,
    reconcile,
)
from content_auditor.domain.entities import Operator
from content_auditor.domain.errors import LookupFailedError
from content_auditor.domain.policy import EDIT_CAPABILITY, PUBLISH_CAPABILITY, AuditPolicy

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class ScheduledItemView(BaseModel):
    """One row of the audit tables."""

    id: str
    title: str
    type_tag: str
    author_id: str
    scheduled_at_utc: datetime
    lateness_seconds: int
    age: str
    publish_now_token: str | None = None
    bump_token: str | None = None


class QueueHealthView(BaseModel):
    """Publish-trigger backlog of the deferred-execution queue."""

    total_pending_triggers: int
    next_trigger_at_utc: datetime | None = None
    notice: str | None = None


class AuditResponse(BaseModel):
    """Audit view response."""

    generated_at_utc: datetime
    grace_seconds: int
    late: list[ScheduledItemView]
    upcoming: list[ScheduledItemView]
    queue_health: QueueHealthView
    advisories: list[str]


class PublishNowRequest(BaseModel):
    """Request to publish a late item immediately."""

    item_id: str = ""
    token: str = ""


class BumpRequest(BaseModel):
    """Request to move a late item's schedule forward."""

    item_id: str = ""
    token: str = ""
    bump_minutes: int = Field(default=60, description="Non-positive values use the default")


class TransitionResponse(BaseModel):
    """Outcome of a corrective action."""

    result: str
    message: str
    item_id: str
    new_scheduled_at_utc: datetime | None = None


# --- Helpers ---


def item_to_view(
    classified: ClassifiedItem,
    tokens: SignedActionTokens | None = None,
    can_publish: bool = True,
) -> ScheduledItemView:
    """Convert a classified item to a table row, with action tokens if given."""
    item = classified.item
    return ScheduledItemView(
        id=item.id,
        title=item.title,
        type_tag=item.type_tag,
        author_id=item.author_id,
        scheduled_at_utc=item.scheduled_at_utc,
        lateness_seconds=int(classified.lateness.total_seconds()),
        age=format_age(classified.lateness),
        publish_now_token=tokens.issue(item.id, "publish_now") if tokens and can_publish else None,
        bump_token=tokens.issue(item.id, "bump") if tokens else None,
    )


def report_to_response(
    report: AuditReport,
    tokens: SignedActionTokens,
    can_publish: bool = True,
) -> AuditResponse:
    """Convert an audit report to the response model. Only late rows get actions."""
    health = report.queue_health
    return AuditResponse(
        generated_at_utc=report.generated_at_utc,
        grace_seconds=int(report.grace.total_seconds()),
        late=[item_to_view(ci, tokens, can_publish) for ci in report.late],
        upcoming=[item_to_view(ci) for ci in report.upcoming],
        queue_health=QueueHealthView(
            total_pending_triggers=health.total_pending_triggers,
            next_trigger_at_utc=health.next_trigger_at_utc,
            notice=NO_TRIGGERS_NOTICE if health.is_idle else None,
        ),
        advisories=list(report.advisories),
    )


def _to_response(output: TransitionOutput) -> TransitionResponse:
    """Map a reconcile output to HTTP, raising for rejected requests."""
    codes = {e.code for e in output.errors}
    if "INVALID_INPUT" in codes:
        raise HTTPException(
            status_code=400,
            detail={"errors": _serialize_errors(output)},
        )
    if "AUTHORIZATION_FAILED" in codes:
        raise HTTPException(status_code=403, detail="Security check failed.")

    return TransitionResponse(
        result=output.result,
        message=result_notice(output.result),
        item_id=output.item_id,
        new_scheduled_at_utc=output.new_scheduled_at_utc,
    )


def _serialize_errors(output: TransitionOutput) -> list[dict[str, Any]]:
    """Serialize errors for JSON response."""
    return [
        {"code": e.code, "message": e.message, "field": e.field}
        for e in output.errors
    ]


def _apply(
    req: TransitionRequest,
    repo: SQLiteItemRepo,
    tokens: SignedActionTokens,
    clock: SystemClock,
    policy: AuditPolicy,
) -> TransitionResponse:
    output = reconcile(
        req,
        lookup=repo,
        authorizer=tokens,
        sink=repo,
        clock=clock,
        policy=policy,
    )
    logger.info("Transition %s on item %s: %s", req.kind, req.item_id, output.result)
    if output.result == "error":
        for e in output.errors:
            logger.warning("Transition %s on item %s failed: %s", req.kind, req.item_id, e.message)
    return _to_response(output)


# --- Routes ---


@router.get("/audit", response_model=AuditResponse)
def get_audit(
    operator: Operator = Depends(require_capability(EDIT_CAPABILITY)),
    repo: SQLiteItemRepo = Depends(get_item_repo),
    queue: JsonFileQueue = Depends(get_queue),
    tokens: SignedActionTokens = Depends(get_action_tokens),
    clock: SystemClock = Depends(get_clock),
    policy: AuditPolicy = Depends(get_policy),
) -> AuditResponse:
    """
    Late and upcoming scheduled items plus queue health.

    Each late row carries fresh single-use tokens for the actions the
    operator may take.
    """
    try:
        report = AuditorComponent(items=repo, queue=queue, clock=clock, policy=policy).run()
    except (LookupFailedError, TimeoutError, ValueError) as e:
        logger.error("Audit for %s failed: %s", operator.id, e)
        raise HTTPException(status_code=503, detail="Audit sources unavailable") from e

    can_publish = policy.allows(operator.roles, PUBLISH_CAPABILITY)
    return report_to_response(report, tokens, can_publish)


@router.post("/publish-now", response_model=TransitionResponse)
def publish_now(
    request: PublishNowRequest,
    operator: Operator = Depends(require_capability(PUBLISH_CAPABILITY)),
    repo: SQLiteItemRepo = Depends(get_item_repo),
    tokens: SignedActionTokens = Depends(get_action_tokens),
    clock: SystemClock = Depends(get_clock),
    policy: AuditPolicy = Depends(get_policy),
) -> TransitionResponse:
    """Publish a scheduled item now; its publish time becomes now."""
    req = TransitionRequest(
        item_id=request.item_id,
        kind="publish_now",
        authorization_token=request.token,
    )
    logger.info("Operator %s requested publish of %s", operator.id, request.item_id)
    return _apply(req, repo, tokens, clock, policy)


@router.post("/bump", response_model=TransitionResponse)
def bump_schedule(
    request: BumpRequest,
    operator: Operator = Depends(require_capability(EDIT_CAPABILITY)),
    repo: SQLiteItemRepo = Depends(get_item_repo),
    tokens: SignedActionTokens = Depends(get_action_tokens),
    clock: SystemClock = Depends(get_clock),
    policy: AuditPolicy = Depends(get_policy),
) -> TransitionResponse:
    """Move a scheduled item's publish time forward by bump_minutes."""
    try:
        bump_duration = timedelta(minutes=request.bump_minutes)
    except OverflowError as e:
        raise HTTPException(
            status_code=400,
            detail={
                "errors": [
                    {
                        "code": "INVALID_INPUT",
                        "message": "bump_minutes is out of range",
                        "field": "bump_minutes",
                    }
                ]
            },
        ) from e

    req = TransitionRequest(
        item_id=request.item_id,
        kind="bump",
        authorization_token=request.token,
        bump_duration=bump_duration,
    )
    logger.info("Operator %s requested bump of %s", operator.id, request.item_id)
    return _apply(req, repo, tokens, clock, policy)
