from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, Query

from training_console.api.deps.admin_auth import require_admin_token
from training_console.models.final_evaluation import FinalEvaluationRecord
from training_console.models.requests import CompletionInput, PanelCommentInput
from training_console.repositories.final_evaluation_repository import (
    comment_to_store,
    plan_to_store,
)
from training_console.repositories.store_fields import format_date
from training_console.services.admin.final_evaluations_service import AdminFinalEvaluationsService
from training_console.services.evaluation_workflow import is_undecided

router = APIRouter(prefix="/final-evaluations", tags=["admin-final-evaluations"])


def _service() -> AdminFinalEvaluationsService:
    return AdminFinalEvaluationsService()


def _record_response(record: FinalEvaluationRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        **plan_to_store(record.plan),
        "result": record.result.value if record.result else None,
        "isUndecided": is_undecided(record),
        "resultComments": record.result_comments,
        "panelMemberComments": [comment_to_store(item) for item in record.panel_member_comments],
        "completedDate": format_date(record.completed_date),
        "completedBy": record.completed_by,
        "isCompleted": record.is_completed,
        "version": record.version,
    }


@router.get("")
async def list_final_evaluations(
    location: str | None = Query(None),
    month: str | None = Query(None),
    service: AdminFinalEvaluationsService = Depends(_service),
):
    records, stats = await service.list_records(location=location, month=month)
    return {"records": [_record_response(record) for record in records], "stats": stats}


@router.get("/{record_id}")
async def get_final_evaluation(
    record_id: str,
    service: AdminFinalEvaluationsService = Depends(_service),
):
    return _record_response(await service.get_record(record_id))


@router.post("/{record_id}/comments")
async def add_panel_comment(
    record_id: str,
    payload: PanelCommentInput,
    service: AdminFinalEvaluationsService = Depends(_service),
    admin_id: str | None = Depends(require_admin_token),
    if_match: str | None = Header(None, alias="If-Match"),
):
    record = await service.append_comment(
        record_id,
        panel_member_id=payload.panelMemberId,
        panel_member_name=payload.panelMemberName,
        comment=payload.comment,
        expected_version=if_match,
        admin_token=admin_id,
    )
    return _record_response(record)


@router.post("/{record_id}/pending")
async def mark_result_pending(
    record_id: str,
    service: AdminFinalEvaluationsService = Depends(_service),
    admin_id: str | None = Depends(require_admin_token),
    if_match: str | None = Header(None, alias="If-Match"),
):
    record = await service.mark_pending(record_id, expected_version=if_match, admin_token=admin_id)
    return _record_response(record)


@router.post("/{record_id}/complete")
async def complete_final_evaluation(
    record_id: str,
    payload: CompletionInput,
    service: AdminFinalEvaluationsService = Depends(_service),
    admin_id: str | None = Depends(require_admin_token),
    if_match: str | None = Header(None, alias="If-Match"),
):
    record = await service.complete(
        record_id,
        result=payload.result,
        result_comments=payload.resultComments,
        completed_by=payload.completedBy,
        expected_version=if_match,
        admin_token=admin_id,
    )
    return _record_response(record)
