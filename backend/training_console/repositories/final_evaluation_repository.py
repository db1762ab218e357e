from __future__ import annotations

import json
import logging
from typing import Any

from training_console.clients.record_store import (
    CONDITION_FAILED_CODE,
    RecordStoreClient,
    RecordStoreError,
)
from training_console.errors import ConcurrentModificationError
from training_console.models.final_evaluation import (
    FinalEvaluationPlan,
    FinalEvaluationRecord,
    FinalEvaluationResult,
    PanelMemberEvaluationComment,
)
from training_console.repositories.store_fields import (
    format_date,
    normalize_date,
    normalize_text,
    named,
)

logger = logging.getLogger(__name__)

CLASS_PATH = "/1.1/classes/FinalEvaluation"


def _result_from_store(raw: Any) -> FinalEvaluationResult | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return FinalEvaluationResult.parse(raw)
    except ValueError:
        logger.warning("Ignoring unknown final evaluation result %r", raw)
        return None


def _comment_from_store(payload: dict[str, Any]) -> PanelMemberEvaluationComment:
    return PanelMemberEvaluationComment(
        panel_member_id=payload.get("panelMemberId", ""),
        panel_member_name=payload.get("panelMemberName", ""),
        comment=payload.get("comment", ""),
        comment_date=normalize_date(payload.get("commentDate")) or normalize_date("1970-01-01"),
    )


def _plan_from_store(payload: dict[str, Any]) -> FinalEvaluationPlan:
    return FinalEvaluationPlan(
        id=payload.get("objectId", ""),
        planner_id=payload.get("plannerId", ""),
        employee_name=payload.get("employeeName", ""),
        employee_code=payload.get("employeeCode", ""),
        department=named(payload.get("department")),
        location=named(payload.get("location")),
        evaluation_date=payload.get("evaluationDate", ""),
        evaluation_time=payload.get("evaluationTime", ""),
        main_panel_member=payload.get("mainPanelMember", ""),
        other_panel_members=tuple(payload.get("otherPanelMembers") or ()),
        comments=payload.get("comments", ""),
        created_date=payload.get("createdDate"),
        created_by=payload.get("createdBy"),
    )


def _from_store(payload: dict[str, Any]) -> FinalEvaluationRecord:
    return FinalEvaluationRecord(
        plan=_plan_from_store(payload),
        result=_result_from_store(payload.get("result")),
        result_comments=normalize_text(payload.get("resultComments")),
        panel_member_comments=tuple(
            _comment_from_store(item) for item in payload.get("panelMemberComments") or []
        ),
        completed_date=normalize_date(payload.get("completedDate")),
        completed_by=payload.get("completedBy") or None,
        is_completed=bool(payload.get("isCompleted", False)),
        version=payload.get("updatedAt"),
    )


def plan_to_store(plan: FinalEvaluationPlan) -> dict[str, Any]:
    return {
        "plannerId": plan.planner_id,
        "employeeName": plan.employee_name,
        "employeeCode": plan.employee_code,
        "department": plan.department,
        "location": plan.location,
        "evaluationDate": plan.evaluation_date,
        "evaluationTime": plan.evaluation_time,
        "mainPanelMember": plan.main_panel_member,
        "otherPanelMembers": list(plan.other_panel_members),
        "comments": plan.comments,
        "createdDate": plan.created_date,
        "createdBy": plan.created_by,
    }


def comment_to_store(entry: PanelMemberEvaluationComment) -> dict[str, Any]:
    return {
        "panelMemberId": entry.panel_member_id,
        "panelMemberName": entry.panel_member_name,
        "comment": entry.comment,
        "commentDate": format_date(entry.comment_date),
    }


def evaluation_fields_to_store(record: FinalEvaluationRecord) -> dict[str, Any]:
    """Only the workflow-owned fields; the plan snapshot is never written back."""
    return {
        "result": record.result.value if record.result else None,
        "resultComments": record.result_comments,
        "panelMemberComments": [comment_to_store(item) for item in record.panel_member_comments],
        "completedDate": format_date(record.completed_date),
        "completedBy": record.completed_by,
        "isCompleted": record.is_completed,
    }


class FinalEvaluationRepository:
    def __init__(self, client: RecordStoreClient) -> None:
        self._client = client

    async def list_records(self, where: dict[str, Any] | None = None) -> list[FinalEvaluationRecord]:
        params = {"where": json.dumps(where)} if where else None
        response = await self._client.get_json(CLASS_PATH, params=params)
        results = response.get("results", [])
        return [_from_store(item) for item in results]

    async def get(self, record_id: str) -> FinalEvaluationRecord | None:
        try:
            payload = await self._client.get_json(f"{CLASS_PATH}/{record_id}")
        except RecordStoreError as exc:
            if exc.status_code == 404:
                return None
            raise
        return _from_store({"objectId": record_id, **payload})

    async def create(self, record: FinalEvaluationRecord) -> FinalEvaluationRecord:
        data = plan_to_store(record.plan) | evaluation_fields_to_store(record)
        response = await self._client.post_json(CLASS_PATH, data)
        return _from_store(data | response)

    async def save(
        self,
        record: FinalEvaluationRecord,
        *,
        expected_version: str | None = None,
    ) -> FinalEvaluationRecord:
        """Write the workflow fields of ``record`` if nobody else got there first.

        The write is refused when the stored version differs from
        ``expected_version`` or when the stored record was completed after it
        was read.
        """
        current = await self.get(record.id)
        if current is None:
            raise RecordStoreError("Final evaluation not found", status_code=404)
        if expected_version and current.version and expected_version != current.version:
            raise ConcurrentModificationError(
                f"Final evaluation {record.id} has changed; refresh and retry"
            )
        if current.is_completed:
            raise ConcurrentModificationError(
                f"Final evaluation {record.id} was completed by {current.completed_by}",
                reason="completed_concurrently",
            )
        payload = evaluation_fields_to_store(record)
        condition: dict[str, Any] = {"isCompleted": False}
        version = expected_version or current.version
        if version:
            condition["updatedAt"] = version
        try:
            response = await self._client.put_json(
                f"{CLASS_PATH}/{record.id}",
                payload,
                params={"where": json.dumps(condition)},
            )
        except RecordStoreError as exc:
            if exc.code != CONDITION_FAILED_CODE:
                raise
            latest = await self.get(record.id)
            if latest is not None and latest.is_completed:
                raise ConcurrentModificationError(
                    f"Final evaluation {record.id} was completed concurrently",
                    reason="completed_concurrently",
                ) from exc
            raise ConcurrentModificationError(
                f"Final evaluation {record.id} changed while saving; refresh and retry"
            ) from exc
        logger.info("Saved final evaluation %s (completed=%s)", record.id, record.is_completed)
        stored = plan_to_store(record.plan) | payload | {"objectId": record.id}
        return _from_store(stored | response)
