from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class PanelCommentInput(BaseModel):
    panelMemberId: str = Field(..., min_length=1)
    panelMemberName: str = Field(..., min_length=1)
    comment: str


class CompletionInput(BaseModel):
    result: str | None = None
    resultComments: str | None = None
    completedBy: str | None = None

    @field_validator("resultComments", "completedBy")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class ApprovalActionInput(BaseModel):
    reason: str | None = None
