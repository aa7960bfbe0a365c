# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_approval.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase, utc_timestamp_type
from leave_approval.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A staff member's leave request; its status is written back by the engine."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_staff_status", "staff_id", "status"),)

    staff_id: str = Field(max_length=64, index=True)
    organization_id: str | None = Field(default=None, max_length=64)
    leave_type: str = Field(max_length=50)
    days: float
    start_date: date
    end_date: date
    reason: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    is_chief_director_leave: bool = False
    workflow_definition_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    workflow_source: str | None = Field(default=None, max_length=255)
    submitted_at: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
    decided_at: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
