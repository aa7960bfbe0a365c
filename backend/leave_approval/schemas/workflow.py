# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal, Self

from pydantic import BaseModel, Field, model_validator

from leave_approval.models.enums import ApproverRole

# ---------------------------------------------------------------------------
# Condition expressions (discriminated union on ``kind``)
# ---------------------------------------------------------------------------

MembershipField = Literal["position", "grade", "unit", "directorate", "duty_station", "leave_type"]
ClassifierFlag = Literal[
    "is_hrmd",
    "is_independent_unit",
    "is_director",
    "is_unit_head",
    "is_head_of_department",
    "is_chief_director",
]


class MembershipCondition(BaseModel):
    """True when the attribute's value is one of ``values``.

    ``None`` inside ``values`` matches a missing attribute.
    """

    kind: Literal["in"] = "in"
    field: MembershipField
    values: list[str | None] = Field(min_length=1)


class DayRangeCondition(BaseModel):
    """True when the requested day count lies within the inclusive range."""

    kind: Literal["days"] = "days"
    min_days: float | None = Field(default=None, ge=0)
    max_days: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_range(self) -> Self:
        if self.min_days is None and self.max_days is None:
            msg = "At least one of min_days or max_days must be set"
            raise ValueError(msg)
        if self.min_days is not None and self.max_days is not None and self.min_days > self.max_days:
            msg = "min_days must not exceed max_days"
            raise ValueError(msg)
        return self


class FlagCondition(BaseModel):
    """True when a role/position classifier result equals ``value``."""

    kind: Literal["flag"] = "flag"
    flag: ClassifierFlag
    value: bool = True


class AllOfCondition(BaseModel):
    """Conjunction of nested conditions; an empty list always matches."""

    kind: Literal["all"] = "all"
    conditions: list[Condition] = []


Condition = Annotated[
    MembershipCondition | DayRangeCondition | FlagCondition | AllOfCondition,
    Field(discriminator="kind"),
]

AllOfCondition.model_rebuild()

# ---------------------------------------------------------------------------
# API request / response schemas
# ---------------------------------------------------------------------------


class WorkflowStepInput(BaseModel):
    """One ordered step of a workflow definition."""

    step_order: int = Field(ge=1)
    approver_role: ApproverRole
    approver_role_type: str | None = Field(default=None, max_length=100)
    is_required: bool = True
    can_skip: bool = False
    can_delegate: bool = True
    conditions: Condition | None = None
    description: str | None = None


def _check_step_orders(steps: list[WorkflowStepInput]) -> None:
    orders = [s.step_order for s in steps]
    if len(set(orders)) != len(orders):
        msg = "step_order values must be unique within a workflow"
        raise ValueError(msg)


class CreateWorkflowRequest(BaseModel):
    """Request body for creating a new workflow definition (version 1)."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    organization_id: str | None = Field(default=None, max_length=64)
    organization_name: str | None = Field(default=None, max_length=255)
    conditions: Condition | None = None
    is_active: bool = True
    is_default: bool = False
    steps: list[WorkflowStepInput] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_steps(self) -> Self:
        _check_step_orders(self.steps)
        return self


class CreateWorkflowVersionRequest(BaseModel):
    """Request body for a new version; omitted fields are copied from the source version.

    ``name`` may only repeat the source name; versions never rename a lineage.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    organization_name: str | None = Field(default=None, max_length=255)
    conditions: Condition | None = None
    steps: list[WorkflowStepInput] | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _validate_steps(self) -> Self:
        if self.steps is not None:
            _check_step_orders(self.steps)
        return self


class WorkflowStepResponse(BaseModel):
    """Response schema for a workflow step."""

    id: uuid.UUID
    step_order: int
    approver_role: ApproverRole
    approver_role_type: str | None
    is_required: bool
    can_skip: bool
    can_delegate: bool
    conditions: Condition | None
    description: str | None


class WorkflowResponse(BaseModel):
    """Response schema for a workflow definition with its steps."""

    id: uuid.UUID
    name: str
    description: str | None
    version: int
    organization_id: str | None
    organization_name: str | None
    is_active: bool
    is_default: bool
    conditions: Condition | None
    created_by: str | None
    created_by_name: str | None
    previous_version_id: uuid.UUID | None
    activated_at: datetime | None
    deactivated_at: datetime | None
    created_at: datetime
    steps: list[WorkflowStepResponse]


class WorkflowListResponse(BaseModel):
    """List of workflow definitions."""

    items: list[WorkflowResponse]
    total: int
