from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import HTTPException, status

from training_console.clients.record_store import RecordStoreClient, RecordStoreError
from training_console.config import load_settings
from training_console.errors import WorkflowError
from training_console.models.final_evaluation import FinalEvaluationRecord, FinalEvaluationResult
from training_console.repositories.final_evaluation_repository import FinalEvaluationRepository
from training_console.services import evaluation_workflow
from training_console.services.admin.http_errors import store_http_error, workflow_http_error
from training_console.services.audit_log_service import record_audit_entry
from training_console.services.final_evaluation_queries import filter_records, summarize
from training_console.telemetry.tracing import emit_event, emit_metric

logger = logging.getLogger(__name__)

ENTITY_TYPE = "final_evaluation"
NOT_FOUND = "Final evaluation not found"
AUDIT_UNAVAILABLE = "Audit log not available"


def _repo() -> FinalEvaluationRepository:
    return FinalEvaluationRepository(RecordStoreClient.from_settings())


def _admin_id(token: str | None) -> str:
    # In absence of user identity, use token as surrogate admin identifier
    return token or "admin"


async def _audit(**entry: Any) -> None:
    try:
        await record_audit_entry(**entry)
    except RecordStoreError as exc:
        logger.error(
            "Audit entry for %s %s not recorded after a successful write: %s",
            entry.get("entity_type"),
            entry.get("entity_id"),
            exc,
        )
        raise store_http_error(exc, not_found=AUDIT_UNAVAILABLE) from exc


class AdminFinalEvaluationsService:
    def __init__(
        self,
        repo: FinalEvaluationRepository | None = None,
        *,
        require_panel_comment: bool | None = None,
        default_actor_id: str | None = None,
    ) -> None:
        self.repo = repo or _repo()
        if require_panel_comment is None or default_actor_id is None:
            settings = load_settings()
            if require_panel_comment is None:
                require_panel_comment = settings.require_panel_comment
            if default_actor_id is None:
                default_actor_id = settings.default_actor_id
        self.require_panel_comment = require_panel_comment
        self.default_actor_id = default_actor_id

    async def list_records(
        self,
        *,
        location: str | None = None,
        month: str | None = None,
    ) -> tuple[list[FinalEvaluationRecord], dict[str, int]]:
        try:
            records = await self.repo.list_records()
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc
        try:
            selected = filter_records(records, location=location, month=month)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        return selected, summarize(selected)

    async def get_record(self, record_id: str) -> FinalEvaluationRecord:
        try:
            record = await self.repo.get(record_id)
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc
        if not record:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
        return record

    async def _transition(
        self,
        record_id: str,
        change: Callable[[FinalEvaluationRecord], FinalEvaluationRecord],
        *,
        expected_version: str | None,
    ) -> FinalEvaluationRecord:
        record = await self.get_record(record_id)
        try:
            updated = evaluation_workflow.assert_consistent(change(record))
            return await self.repo.save(updated, expected_version=expected_version or record.version)
        except WorkflowError as exc:
            logger.info("Final evaluation %s transition refused: %s", record_id, exc.reason)
            raise workflow_http_error(exc) from exc
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc

    async def append_comment(
        self,
        record_id: str,
        *,
        panel_member_id: str,
        panel_member_name: str,
        comment: str,
        expected_version: str | None = None,
        admin_token: str | None = None,
    ) -> FinalEvaluationRecord:
        record = await self._transition(
            record_id,
            lambda current: evaluation_workflow.append_comment(
                current,
                panel_member_id=panel_member_id,
                panel_member_name=panel_member_name,
                comment=comment,
            ),
            expected_version=expected_version,
        )
        emit_event(
            "final_evaluation.comment_added",
            entity_type=ENTITY_TYPE,
            entity_id=record_id,
            actor=panel_member_id,
            attributes={"commentCount": len(record.panel_member_comments)},
        )
        emit_metric(
            "final_evaluation.panel_comments",
            len(record.panel_member_comments),
            entity_id=record_id,
        )
        await _audit(
            admin_id=_admin_id(admin_token),
            action="comment",
            entity_type=ENTITY_TYPE,
            entity_id=record_id,
            details=f"Comment added by {panel_member_name}",
        )
        return record

    async def mark_pending(
        self,
        record_id: str,
        *,
        expected_version: str | None = None,
        admin_token: str | None = None,
    ) -> FinalEvaluationRecord:
        record = await self._transition(
            record_id,
            evaluation_workflow.mark_pending,
            expected_version=expected_version,
        )
        await _audit(
            admin_id=_admin_id(admin_token),
            action="mark_pending",
            entity_type=ENTITY_TYPE,
            entity_id=record_id,
            details="Result marked as pending",
        )
        return record

    async def complete(
        self,
        record_id: str,
        *,
        result: FinalEvaluationResult | str | None,
        result_comments: str | None = None,
        completed_by: str | None = None,
        expected_version: str | None = None,
        admin_token: str | None = None,
    ) -> FinalEvaluationRecord:
        actor = completed_by or self.default_actor_id or _admin_id(admin_token)
        record = await self._transition(
            record_id,
            lambda current: evaluation_workflow.complete(
                current,
                result=result,
                result_comments=result_comments,
                completed_by=actor,
                require_panel_comment=self.require_panel_comment,
            ),
            expected_version=expected_version,
        )
        followup = evaluation_workflow.outcome_followup(record.result)
        emit_event(
            "final_evaluation.completed",
            entity_type=ENTITY_TYPE,
            entity_id=record_id,
            actor=actor,
            attributes={
                "result": record.result.value,
                "closesPlanner": followup.closes_planner,
                "needsRetraining": followup.needs_retraining,
                "notification": followup.notification_message,
                "plannerId": record.plan.planner_id,
            },
        )
        await _audit(
            admin_id=_admin_id(admin_token),
            action="complete",
            entity_type=ENTITY_TYPE,
            entity_id=record_id,
            details=f"Final evaluation completed with result {record.result.value}",
        )
        return record
