"""Final evaluation state machine.

A record starts undecided, may be marked ``Pending`` while the panel
deliberates, collects panel comments, and is completed exactly once with a
terminal outcome. Every operation returns a new record; a failed operation
raises and leaves its input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from training_console.errors import InvalidTransitionError, WorkflowValidationError
from training_console.models.final_evaluation import (
    TERMINAL_RESULTS,
    FinalEvaluationPlan,
    FinalEvaluationRecord,
    FinalEvaluationResult,
    PanelMemberEvaluationComment,
)

RETRAINING_MESSAGE = "Please carry out re-trainings in discussion with the QA"
ANNUAL_TRAINING_MESSAGE = "Annual employee training can now be prepared for this trainee"


@dataclass(frozen=True)
class OutcomeFollowup:
    closes_planner: bool
    needs_retraining: bool
    notification_message: str


_FOLLOWUPS = {
    FinalEvaluationResult.SATISFACTORY: OutcomeFollowup(
        closes_planner=True,
        needs_retraining=False,
        notification_message=ANNUAL_TRAINING_MESSAGE,
    ),
    FinalEvaluationResult.BELOW_SATISFACTORY: OutcomeFollowup(
        closes_planner=True,
        needs_retraining=False,
        notification_message=RETRAINING_MESSAGE,
    ),
    FinalEvaluationResult.NEED_RETRAINING: OutcomeFollowup(
        closes_planner=False,
        needs_retraining=True,
        notification_message=RETRAINING_MESSAGE,
    ),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_datetime(value: datetime | str) -> datetime:
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise WorkflowValidationError(
                f"Invalid timestamp: {value}", reason="invalid_timestamp"
            ) from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _coerce_result(value: FinalEvaluationResult | str | None) -> FinalEvaluationResult | None:
    if value is None or isinstance(value, FinalEvaluationResult):
        return value
    try:
        return FinalEvaluationResult.parse(value)
    except ValueError:
        return None


def new_record(plan: FinalEvaluationPlan, *, version: str | None = None) -> FinalEvaluationRecord:
    return FinalEvaluationRecord(plan=plan, version=version)


def is_undecided(record: FinalEvaluationRecord) -> bool:
    """An absent result and an explicit ``Pending`` both mean "awaiting decision"."""
    return record.result is None or record.result is FinalEvaluationResult.PENDING


def _require_open(record: FinalEvaluationRecord, action: str) -> None:
    if record.is_completed:
        raise InvalidTransitionError(
            f"Final evaluation {record.id} is already completed; cannot {action}",
            reason="already_completed",
        )


def append_comment(
    record: FinalEvaluationRecord,
    *,
    panel_member_id: str,
    panel_member_name: str,
    comment: str,
    comment_date: datetime | str | None = None,
) -> FinalEvaluationRecord:
    """Append one panel comment and return the updated record.

    The record's ``panel_member_comments`` is the updated ordered sequence:
    earlier entries unchanged, the new entry last.
    """
    _require_open(record, "add comments")
    if not panel_member_id or not panel_member_id.strip():
        raise WorkflowValidationError(
            "Panel member id is required", reason="missing_panel_member_id"
        )
    if not panel_member_name or not panel_member_name.strip():
        raise WorkflowValidationError(
            "Panel member name is required", reason="missing_panel_member_name"
        )
    if not comment or not comment.strip():
        raise WorkflowValidationError("Comment must not be blank", reason="blank_comment")

    authored_at = _now() if comment_date is None else coerce_datetime(comment_date)
    if record.panel_member_comments:
        previous = record.panel_member_comments[-1].comment_date
        if authored_at < previous:
            raise WorkflowValidationError(
                f"Comment date {authored_at.isoformat()} precedes the previous comment "
                f"({previous.isoformat()})",
                reason="comment_date_out_of_order",
            )

    entry = PanelMemberEvaluationComment(
        panel_member_id=panel_member_id.strip(),
        panel_member_name=panel_member_name.strip(),
        comment=comment.strip(),
        comment_date=authored_at,
    )
    return replace(record, panel_member_comments=(*record.panel_member_comments, entry))


def mark_pending(record: FinalEvaluationRecord) -> FinalEvaluationRecord:
    _require_open(record, "change the result")
    return replace(record, result=FinalEvaluationResult.PENDING)


def complete(
    record: FinalEvaluationRecord,
    *,
    result: FinalEvaluationResult | str | None,
    completed_by: str,
    result_comments: str | None = None,
    completed_at: datetime | str | None = None,
    require_panel_comment: bool = False,
) -> FinalEvaluationRecord:
    _require_open(record, "complete it again")
    outcome = _coerce_result(result)
    if outcome not in TERMINAL_RESULTS:
        raise InvalidTransitionError(
            f"Completion requires one of "
            f"{', '.join(sorted(item.value for item in TERMINAL_RESULTS))}; got {result!r}",
            reason="non_terminal_result",
        )
    if not completed_by or not completed_by.strip():
        raise WorkflowValidationError(
            "Completing a final evaluation requires the acting identity",
            reason="missing_actor",
        )
    if require_panel_comment and not record.panel_member_comments:
        raise WorkflowValidationError(
            "At least one evaluation comment has to be entered to save the final "
            "evaluation result",
            reason="no_panel_comments",
        )

    summary = result_comments.strip() if result_comments else None
    return replace(
        record,
        result=outcome,
        result_comments=summary or None,
        completed_date=_now() if completed_at is None else coerce_datetime(completed_at),
        completed_by=completed_by.strip(),
        is_completed=True,
    )


def invariant_violations(record: FinalEvaluationRecord) -> list[str]:
    violations: list[str] = []
    if record.is_completed:
        if record.result not in TERMINAL_RESULTS:
            violations.append("completed record has no terminal result")
        if record.completed_date is None:
            violations.append("completed record has no completed date")
        if not record.completed_by:
            violations.append("completed record has no completing actor")
    elif record.completed_date is not None or record.completed_by:
        violations.append("open record carries completion fields")
    if record.result_comments and record.result is None:
        violations.append("result comments set without a result")
    dates = [entry.comment_date for entry in record.panel_member_comments]
    if any(later < earlier for earlier, later in zip(dates, dates[1:])):
        violations.append("panel comments are not in chronological order")
    return violations


def assert_consistent(record: FinalEvaluationRecord) -> FinalEvaluationRecord:
    violations = invariant_violations(record)
    if violations:
        raise WorkflowValidationError(
            f"Final evaluation {record.id} is inconsistent: {'; '.join(violations)}",
            reason="inconsistent_record",
        )
    return record


def outcome_followup(result: FinalEvaluationResult | str) -> OutcomeFollowup:
    outcome = _coerce_result(result)
    followup = _FOLLOWUPS.get(outcome) if outcome is not None else None
    if followup is None:
        raise InvalidTransitionError(
            f"No follow-up for non-terminal result {result!r}",
            reason="non_terminal_result",
        )
    return followup
