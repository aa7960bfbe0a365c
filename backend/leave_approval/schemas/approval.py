# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leave_approval.models.enums import ApproverRole, LeaveStatus, LeaveType, StepStatus

# ---------------------------------------------------------------------------
# Engine values
# ---------------------------------------------------------------------------


class ApprovalLevel(BaseModel):
    """A generated approval level, before it is persisted as a step."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1)
    approver_role: ApproverRole
    approver_staff_id: str | None = None
    approver_name: str | None = None
    status: StepStatus = StepStatus.PENDING
    can_skip: bool = False
    can_delegate: bool = True


class ApprovalStepView(BaseModel):
    """Immutable snapshot of a persisted approval step."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: uuid.UUID | None = None
    level: int
    approver_role: ApproverRole
    approver_staff_id: str | None = None
    approver_name: str | None = None
    approver_user_id: str | None = None
    status: StepStatus = StepStatus.PENDING
    approval_date: datetime | None = None
    comments: str | None = None
    delegated_to: str | None = None
    delegated_to_name: str | None = None
    delegation_date: datetime | None = None
    can_skip: bool = False
    can_delegate: bool = True
    previous_level_completed: bool = False
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for submitting a leave request into the approval workflow."""

    staff_id: str = Field(min_length=1, max_length=64)
    leave_type: LeaveType
    days: float = Field(gt=0)
    start_date: date
    end_date: date
    reason: str | None = None
    organization_id: str | None = Field(default=None, max_length=64)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class StepActionPayload(BaseModel):
    """Request body for approve/reject/skip actions."""

    comments: str | None = Field(default=None, max_length=2000)


class DelegateStepPayload(BaseModel):
    """Request body for delegating a step to another staff member."""

    delegate_to: str = Field(min_length=1, max_length=64)
    comments: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveApprovalState(BaseModel):
    """Approval ledger of a leave request plus its aggregate status."""

    leave_request_id: uuid.UUID
    staff_id: str
    leave_type: LeaveType
    days: float
    status: LeaveStatus
    is_chief_director_leave: bool
    requires_external_clearance: bool
    workflow_source: str | None
    steps: list[ApprovalStepView]
    next_approvers: list[ApprovalStepView]
