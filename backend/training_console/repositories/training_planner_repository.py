from __future__ import annotations

import json
from dataclasses import replace
from typing import Any

from training_console.clients.record_store import (
    CONDITION_FAILED_CODE,
    RecordStoreClient,
    RecordStoreError,
)
from training_console.errors import ConcurrentModificationError
from training_console.models.training_planner import (
    EmployeeSummary,
    PlannerStatus,
    PlannerType,
    TrainingPlanner,
)
from training_console.repositories.store_fields import format_date, named, normalize_date

CLASS_PATH = "/1.1/classes/TrainingPlanner"


def _employee_from_store(payload: dict[str, Any]) -> EmployeeSummary:
    location = payload.get("location")
    return EmployeeSummary(
        id=payload.get("id", ""),
        employee_code=payload.get("employeeCode", ""),
        first_name=payload.get("firstName", ""),
        last_name=payload.get("lastName", ""),
        department=named(payload.get("department")),
        location_id=named(location, "id") if isinstance(location, dict) else named(location),
        location=named(location),
        joining_date=payload.get("joiningDate", ""),
    )


def _from_store(payload: dict[str, Any]) -> TrainingPlanner:
    return TrainingPlanner(
        id=payload.get("objectId", ""),
        employee=_employee_from_store(payload.get("employee") or {}),
        planner_type=PlannerType(int(payload.get("plannerType", PlannerType.GENERAL_NEW_EMPLOYEE))),
        status=PlannerStatus(payload.get("status", PlannerStatus.DRAFT.value)),
        created_by=payload.get("createdBy", ""),
        created_date=payload.get("createdDate", ""),
        planner_number=payload.get("plannerNumber"),
        submitted_date=normalize_date(payload.get("submittedDate")),
        approved_date=normalize_date(payload.get("approvedDate")),
        rejection_reason=payload.get("rejectionReason"),
        last_modified_by=payload.get("lastModifiedBy"),
        last_modified_date=normalize_date(payload.get("lastModifiedDate")),
        version=payload.get("updatedAt"),
    )


def _decision_to_store(planner: TrainingPlanner) -> dict[str, Any]:
    return {
        "status": planner.status.value,
        "approvedDate": format_date(planner.approved_date),
        "rejectionReason": planner.rejection_reason,
        "lastModifiedBy": planner.last_modified_by,
        "lastModifiedDate": format_date(planner.last_modified_date),
    }


class TrainingPlannerRepository:
    def __init__(self, client: RecordStoreClient) -> None:
        self._client = client

    async def list_planners(self, *, status: PlannerStatus | None = None) -> list[TrainingPlanner]:
        where: dict[str, Any] = {}
        if status is not None:
            where["status"] = status.value
        params = {"where": json.dumps(where)} if where else None
        response = await self._client.get_json(CLASS_PATH, params=params)
        results = response.get("results", [])
        return [_from_store(item) for item in results]

    async def get(self, planner_id: str) -> TrainingPlanner | None:
        try:
            payload = await self._client.get_json(f"{CLASS_PATH}/{planner_id}")
        except RecordStoreError as exc:
            if exc.status_code == 404:
                return None
            raise
        return _from_store({"objectId": planner_id, **payload})

    async def save_decision(
        self,
        planner: TrainingPlanner,
        *,
        expected_status: PlannerStatus = PlannerStatus.SUBMITTED,
    ) -> TrainingPlanner:
        """Persist an approve/reject decision only while the stored planner is still awaiting one."""
        payload = _decision_to_store(planner)
        try:
            response = await self._client.put_json(
                f"{CLASS_PATH}/{planner.id}",
                payload,
                params={"where": json.dumps({"status": expected_status.value})},
            )
        except RecordStoreError as exc:
            if exc.code == CONDITION_FAILED_CODE:
                raise ConcurrentModificationError(
                    f"Planner {planner.id} is no longer {expected_status.value}",
                    reason="planner_status_changed",
                ) from exc
            raise
        version = response.get("updatedAt")
        return replace(planner, version=version) if version else planner
