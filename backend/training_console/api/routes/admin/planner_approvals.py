from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from training_console.api.deps.admin_auth import require_admin_token
from training_console.models.requests import ApprovalActionInput
from training_console.models.training_planner import TrainingPlanner
from training_console.repositories.store_fields import format_date
from training_console.services.admin.planner_approvals_service import AdminPlannerApprovalsService
from training_console.services.approval_actions import ApprovalIntent, command_for

router = APIRouter(prefix="/planner-approvals", tags=["admin-planner-approvals"])


def _service() -> AdminPlannerApprovalsService:
    return AdminPlannerApprovalsService()


def _planner_response(planner: TrainingPlanner) -> dict[str, Any]:
    employee = planner.employee
    return {
        "id": planner.id,
        "plannerNumber": planner.planner_number,
        "plannerType": planner.planner_type.value,
        "status": planner.status.value,
        "employee": {
            "id": employee.id,
            "employeeCode": employee.employee_code,
            "name": employee.full_name,
            "department": employee.department,
            "locationId": employee.location_id,
            "location": employee.location,
            "joiningDate": employee.joining_date,
        },
        "createdBy": planner.created_by,
        "createdDate": planner.created_date,
        "submittedDate": format_date(planner.submitted_date),
        "approvedDate": format_date(planner.approved_date),
        "rejectionReason": planner.rejection_reason,
        "lastModifiedBy": planner.last_modified_by,
        "lastModifiedDate": format_date(planner.last_modified_date),
    }


@router.get("")
async def list_pending_approvals(
    location: str | None = Query(None),
    joining_date_from: str | None = Query(None, alias="joiningDateFrom"),
    joining_date_to: str | None = Query(None, alias="joiningDateTo"),
    sort_by: str | None = Query(None, alias="sortBy"),
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    service: AdminPlannerApprovalsService = Depends(_service),
):
    planners = await service.list_pending(
        location=location,
        joining_date_from=joining_date_from,
        joining_date_to=joining_date_to,
        sort_by=sort_by,
        descending=direction == "desc",
    )
    return {"planners": [_planner_response(planner) for planner in planners]}


@router.get("/dashboard")
async def approvals_dashboard(service: AdminPlannerApprovalsService = Depends(_service)):
    return await service.dashboard()


@router.post("/{planner_id}/{intent}")
async def act_on_planner(
    planner_id: str,
    intent: ApprovalIntent,
    payload: ApprovalActionInput | None = Body(None),
    service: AdminPlannerApprovalsService = Depends(_service),
    admin_id: str | None = Depends(require_admin_token),
):
    planner = await service.get_planner(planner_id)
    actions = service.actions(admin_token=admin_id, reason=payload.reason if payload else None)
    updated = await actions.send(command_for(planner, intent))
    return {"intent": intent.value, "planner": _planner_response(updated)}
