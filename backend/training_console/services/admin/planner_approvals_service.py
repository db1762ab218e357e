from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from training_console.clients.record_store import RecordStoreClient, RecordStoreError
from training_console.errors import WorkflowError
from training_console.models.training_planner import PlannerStatus, TrainingPlanner
from training_console.repositories.training_planner_repository import TrainingPlannerRepository
from training_console.services.admin.http_errors import store_http_error, workflow_http_error
from training_console.services.approval_actions import ApprovalActions
from training_console.services.audit_log_service import record_audit_entry
from training_console.services.planner_approval import (
    approval_dashboard,
    approve_planner,
    pending_approvals,
    reject_planner,
)
from training_console.telemetry.tracing import emit_event

logger = logging.getLogger(__name__)

ENTITY_TYPE = "training_planner"
NOT_FOUND = "Training planner not found"
AUDIT_UNAVAILABLE = "Audit log not available"


def _repo() -> TrainingPlannerRepository:
    return TrainingPlannerRepository(RecordStoreClient.from_settings())


def _admin_id(token: str | None) -> str:
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


class AdminPlannerApprovalsService:
    def __init__(self, repo: TrainingPlannerRepository | None = None) -> None:
        self.repo = repo or _repo()

    async def _all_planners(self) -> list[TrainingPlanner]:
        try:
            return await self.repo.list_planners()
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc

    async def list_pending(
        self,
        *,
        location: str | None = None,
        joining_date_from: str | None = None,
        joining_date_to: str | None = None,
        sort_by: str | None = None,
        descending: bool = False,
    ) -> list[TrainingPlanner]:
        planners = await self._all_planners()
        try:
            return pending_approvals(
                planners,
                location=location,
                joining_date_from=joining_date_from,
                joining_date_to=joining_date_to,
                sort_by=sort_by,
                descending=descending,
            )
        except WorkflowError as exc:
            raise workflow_http_error(exc) from exc
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc

    async def dashboard(self) -> dict[str, int]:
        return approval_dashboard(await self._all_planners())

    async def get_planner(self, planner_id: str) -> TrainingPlanner:
        try:
            planner = await self.repo.get(planner_id)
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc
        if not planner:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
        return planner

    def actions(self, *, admin_token: str | None, reason: str | None = None) -> ApprovalActions:
        async def _approve(planner: TrainingPlanner) -> TrainingPlanner:
            return await self.approve(planner, admin_token=admin_token)

        async def _reject(planner: TrainingPlanner) -> TrainingPlanner:
            return await self.reject(planner, reason=reason, admin_token=admin_token)

        return ApprovalActions(on_view=self.view, on_approve=_approve, on_reject=_reject)

    async def view(self, planner: TrainingPlanner) -> TrainingPlanner:
        return planner

    async def _decide(self, decided: TrainingPlanner) -> TrainingPlanner:
        try:
            return await self.repo.save_decision(decided, expected_status=PlannerStatus.SUBMITTED)
        except WorkflowError as exc:
            raise workflow_http_error(exc) from exc
        except RecordStoreError as exc:
            raise store_http_error(exc, not_found=NOT_FOUND) from exc

    async def approve(self, planner: TrainingPlanner, *, admin_token: str | None) -> TrainingPlanner:
        actor = _admin_id(admin_token)
        try:
            decided = approve_planner(planner, approved_by=actor)
        except WorkflowError as exc:
            raise workflow_http_error(exc) from exc
        saved = await self._decide(decided)
        emit_event("planner.approved", entity_type=ENTITY_TYPE, entity_id=planner.id, actor=actor)
        await _audit(
            admin_id=actor,
            action="approve",
            entity_type=ENTITY_TYPE,
            entity_id=planner.id,
            details=f"Approved training planner for {planner.employee.full_name}",
        )
        return saved

    async def reject(
        self,
        planner: TrainingPlanner,
        *,
        reason: str | None,
        admin_token: str | None,
    ) -> TrainingPlanner:
        actor = _admin_id(admin_token)
        try:
            decided = reject_planner(planner, reason=reason, rejected_by=actor)
        except WorkflowError as exc:
            raise workflow_http_error(exc) from exc
        saved = await self._decide(decided)
        emit_event("planner.rejected", entity_type=ENTITY_TYPE, entity_id=planner.id, actor=actor)
        await _audit(
            admin_id=actor,
            action="reject",
            entity_type=ENTITY_TYPE,
            entity_id=planner.id,
            details=f"Rejected training planner for {planner.employee.full_name}: {decided.rejection_reason}",
        )
        return saved
