from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FinalEvaluationResult(str, Enum):
    SATISFACTORY = "Satisfactory"
    NEED_RETRAINING = "Need re-Training"
    BELOW_SATISFACTORY = "Below Satisfactory"
    PENDING = "Pending"

    @property
    def is_terminal(self) -> bool:
        return self is not FinalEvaluationResult.PENDING

    @classmethod
    def parse(cls, raw: str) -> "FinalEvaluationResult":
        value = raw.strip()
        for member in cls:
            if value in {member.value, member.name}:
                return member
        compact = value.replace(" ", "").replace("-", "").replace("_", "").lower()
        for member in cls:
            if compact == member.value.replace(" ", "").replace("-", "").lower():
                return member
        raise ValueError(f"Unknown final evaluation result: {raw}")


TERMINAL_RESULTS = frozenset(
    result for result in FinalEvaluationResult if result.is_terminal
)


@dataclass(frozen=True)
class PanelMemberEvaluationComment:
    panel_member_id: str
    panel_member_name: str
    comment: str
    comment_date: datetime


@dataclass(frozen=True)
class FinalEvaluationPlan:
    """Snapshot of the planned final evaluation a record is built from.

    Owned by the training-plan side; the evaluation workflow never edits it.
    """

    id: str
    planner_id: str
    employee_name: str
    employee_code: str
    department: str
    location: str
    evaluation_date: str
    evaluation_time: str = ""
    main_panel_member: str = ""
    other_panel_members: tuple[str, ...] = ()
    comments: str = ""
    created_date: str | None = None
    created_by: str | None = None

    @property
    def panel_member_ids(self) -> tuple[str, ...]:
        return tuple(
            member for member in (self.main_panel_member, *self.other_panel_members) if member
        )


@dataclass(frozen=True)
class FinalEvaluationRecord:
    plan: FinalEvaluationPlan
    result: FinalEvaluationResult | None = None
    result_comments: str | None = None
    panel_member_comments: tuple[PanelMemberEvaluationComment, ...] = field(default=())
    completed_date: datetime | None = None
    completed_by: str | None = None
    is_completed: bool = False
    version: str | None = None

    @property
    def id(self) -> str:
        return self.plan.id
