# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_approval.models.base import TimestampMixin, UUIDBase, utc_timestamp_type


class WorkflowDefinition(UUIDBase, TimestampMixin, table=True):
    """Versioned, conditional approval chain stored in the catalogue."""

    __tablename__ = "workflow_definition"
    __table_args__ = (
        sa.UniqueConstraint("name", "version", "organization_id", name="uq_workflow_name_version_org"),
        sa.Index("ix_workflow_active", "is_active", "organization_id"),
    )

    name: str = Field(max_length=255)
    description: str | None = None
    version: int = 1
    organization_id: str | None = Field(default=None, max_length=64)
    organization_name: str | None = Field(default=None, max_length=255)
    is_active: bool = True
    is_default: bool = False
    conditions_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_by: str | None = Field(default=None, max_length=64)
    created_by_name: str | None = Field(default=None, max_length=255)
    previous_version_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    activated_at: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
    deactivated_at: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]


class WorkflowStep(UUIDBase, table=True):
    """An ordered approval step owned by a workflow definition."""

    __tablename__ = "workflow_step"
    __table_args__ = (sa.UniqueConstraint("workflow_id", "step_order", name="uq_workflow_step_order"),)

    workflow_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("workflow_definition.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    step_order: int = Field(ge=1)
    approver_role: str = Field(max_length=50)
    approver_role_type: str | None = Field(default=None, max_length=100)
    is_required: bool = True
    can_skip: bool = False
    can_delegate: bool = True
    conditions_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    description: str | None = None
