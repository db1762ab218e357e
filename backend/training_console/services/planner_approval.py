from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from training_console.errors import InvalidTransitionError, WorkflowValidationError
from training_console.models.training_planner import PlannerStatus, TrainingPlanner
from training_console.repositories.store_fields import normalize_date
from training_console.services.evaluation_workflow import coerce_datetime

MIN_REJECTION_REASON_LENGTH = 10
OVERDUE_AFTER = timedelta(days=3)

SORT_KEYS = {
    "employeeCode": lambda planner: planner.employee.employee_code,
    "employeeName": lambda planner: planner.employee.full_name,
    "location": lambda planner: planner.employee.location,
    "joiningDate": lambda planner: planner.employee.joining_date,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _joined_within(
    planner: TrainingPlanner,
    start: datetime | None,
    end: datetime | None,
) -> bool:
    # Planners without a readable joining date never match a date range.
    joined = normalize_date(planner.employee.joining_date)
    if joined is None:
        return False
    return (start is None or joined >= start) and (end is None or joined <= end)


def _require_submitted(planner: TrainingPlanner, action: str) -> None:
    if planner.status is not PlannerStatus.SUBMITTED:
        raise InvalidTransitionError(
            f"Planner {planner.id} is {planner.status.value}; only submitted planners can be {action}",
            reason="planner_not_submitted",
        )


def _require_actor(actor: str) -> str:
    if not actor or not actor.strip():
        raise WorkflowValidationError("Acting identity is required", reason="missing_actor")
    return actor.strip()


def approve_planner(
    planner: TrainingPlanner,
    *,
    approved_by: str,
    at: datetime | None = None,
) -> TrainingPlanner:
    _require_submitted(planner, "approved")
    actor = _require_actor(approved_by)
    moment = at or _now()
    return replace(
        planner,
        status=PlannerStatus.APPROVED,
        approved_date=moment,
        rejection_reason=None,
        last_modified_by=actor,
        last_modified_date=moment,
    )


def reject_planner(
    planner: TrainingPlanner,
    *,
    reason: str | None,
    rejected_by: str,
    at: datetime | None = None,
) -> TrainingPlanner:
    _require_submitted(planner, "rejected")
    cleaned = (reason or "").strip()
    if not cleaned:
        raise WorkflowValidationError("Rejection reason is required", reason="missing_reason")
    if len(cleaned) < MIN_REJECTION_REASON_LENGTH:
        raise WorkflowValidationError(
            f"Please provide a detailed reason (minimum {MIN_REJECTION_REASON_LENGTH} characters)",
            reason="reason_too_short",
        )
    actor = _require_actor(rejected_by)
    moment = at or _now()
    return replace(
        planner,
        status=PlannerStatus.REJECTED,
        rejection_reason=cleaned,
        last_modified_by=actor,
        last_modified_date=moment,
    )


def pending_approvals(
    planners: Iterable[TrainingPlanner],
    *,
    location: str | None = None,
    joining_date_from: str | None = None,
    joining_date_to: str | None = None,
    sort_by: str | None = None,
    descending: bool = False,
) -> list[TrainingPlanner]:
    selected = [planner for planner in planners if planner.status is PlannerStatus.SUBMITTED]
    if location:
        selected = [planner for planner in selected if planner.employee.location_id == location]
    if joining_date_from or joining_date_to:
        start = coerce_datetime(joining_date_from) if joining_date_from else None
        end = coerce_datetime(joining_date_to) if joining_date_to else None
        selected = [planner for planner in selected if _joined_within(planner, start, end)]
    if sort_by:
        key = SORT_KEYS.get(sort_by)
        if key is None:
            raise ValueError(f"Unsupported sort key: {sort_by}")
        selected = sorted(selected, key=key, reverse=descending)
    return selected


def approval_dashboard(
    planners: Iterable[TrainingPlanner],
    *,
    now: datetime | None = None,
) -> dict[str, int]:
    moment = now or _now()
    items = list(planners)

    def _same_month(value: datetime | None) -> bool:
        return value is not None and (value.year, value.month) == (moment.year, moment.month)

    submitted = [planner for planner in items if planner.status is PlannerStatus.SUBMITTED]
    return {
        "pending": len(submitted),
        "approvedThisMonth": sum(
            1
            for planner in items
            if planner.status is PlannerStatus.APPROVED and _same_month(planner.approved_date)
        ),
        # Rejections carry no dedicated date field.
        "rejectedThisMonth": sum(
            1
            for planner in items
            if planner.status is PlannerStatus.REJECTED
            and _same_month(planner.last_modified_date or planner.submitted_date)
        ),
        "overdue": sum(
            1
            for planner in submitted
            if planner.submitted_date is not None
            and moment - planner.submitted_date > OVERDUE_AFTER
        ),
    }
