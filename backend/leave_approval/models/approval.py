# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_approval.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase, utc_timestamp_type
from leave_approval.models.enums import StepStatus


class ApprovalStep(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """One approval level of a leave request's chain."""

    __tablename__ = "approval_step"
    __table_args__ = (sa.UniqueConstraint("leave_request_id", "level", name="uq_approval_step_level"),)

    leave_request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    level: int = Field(ge=1)
    approver_role: str = Field(max_length=50)
    approver_staff_id: str | None = Field(default=None, max_length=64)
    approver_name: str | None = Field(default=None, max_length=255)
    approver_user_id: str | None = Field(default=None, max_length=64)
    status: str = Field(default=StepStatus.PENDING, max_length=20, sa_column_kwargs={"server_default": "pending"})
    approval_date: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
    comments: str | None = None
    delegated_to: str | None = Field(default=None, max_length=64)
    delegated_to_name: str | None = Field(default=None, max_length=255)
    delegation_date: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
    can_skip: bool = False
    can_delegate: bool = True
    previous_level_completed: bool = False
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
