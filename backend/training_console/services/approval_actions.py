"""View / approve / reject affordances for a pending training planner.

Each intent forwards the planner reference, unchanged, to exactly one handler
supplied by the caller. Nothing here validates, retries or catches; whatever
the handler returns or raises belongs to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

PlanT = TypeVar("PlanT")


class ApprovalIntent(str, Enum):
    VIEW = "view"
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class ApprovalCommand(Generic[PlanT]):
    intent: ApprovalIntent
    planner: PlanT


def command_for(planner: PlanT, intent: ApprovalIntent | str) -> ApprovalCommand[PlanT]:
    return ApprovalCommand(intent=ApprovalIntent(intent), planner=planner)


@dataclass(frozen=True)
class ApprovalActions(Generic[PlanT]):
    on_view: Callable[[PlanT], Any]
    on_approve: Callable[[PlanT], Any]
    on_reject: Callable[[PlanT], Any]

    def handler_for(self, intent: ApprovalIntent | str) -> Callable[[PlanT], Any]:
        intent = ApprovalIntent(intent)
        if intent is ApprovalIntent.VIEW:
            return self.on_view
        if intent is ApprovalIntent.APPROVE:
            return self.on_approve
        return self.on_reject

    def dispatch(self, intent: ApprovalIntent | str, planner: PlanT) -> Any:
        return self.handler_for(intent)(planner)

    def send(self, command: ApprovalCommand[PlanT]) -> Any:
        return self.dispatch(command.intent, command.planner)
