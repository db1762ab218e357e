from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PlannerStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class PlannerType(int, Enum):
    GENERAL_NEW_EMPLOYEE = 11
    ANNUAL_EMPLOYEE = 20


@dataclass(frozen=True)
class EmployeeSummary:
    id: str
    employee_code: str
    first_name: str
    last_name: str
    department: str
    location_id: str
    location: str
    joining_date: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class TrainingPlanner:
    id: str
    employee: EmployeeSummary
    planner_type: PlannerType
    status: PlannerStatus
    created_by: str
    created_date: str
    planner_number: str | None = None
    submitted_date: datetime | None = None
    approved_date: datetime | None = None
    rejection_reason: str | None = None
    last_modified_by: str | None = None
    last_modified_date: datetime | None = None
    version: str | None = None
