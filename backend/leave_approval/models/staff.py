# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_approval.models.base import TimestampMixin, UUIDBase, utc_timestamp_type
from leave_approval.models.enums import DelegationStatus


class StaffMember(TimestampMixin, table=True):
    """Organisational record of a civil servant, keyed by staff number."""

    __tablename__ = "staff_member"
    __table_args__ = (sa.Index("ix_staff_role_unit", "system_role", "unit"),)

    staff_id: str = Field(primary_key=True, max_length=64)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    email: str | None = Field(default=None, max_length=255)
    duty_station: str | None = Field(default=None, max_length=20)
    directorate: str | None = Field(default=None, max_length=255, index=True)
    division: str | None = Field(default=None, max_length=255)
    unit: str | None = Field(default=None, max_length=255)
    sub_unit: str | None = Field(default=None, max_length=255)
    immediate_supervisor_id: str | None = Field(default=None, max_length=64)
    manager_id: str | None = Field(default=None, max_length=64)
    grade: str = Field(default="", max_length=100)
    position: str = Field(default="", max_length=255)
    system_role: str | None = Field(default=None, max_length=50)
    acting_officer_id: str | None = Field(default=None, max_length=64)
    active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ActingAppointment(UUIDBase, TimestampMixin, table=True):
    """Time-bounded appointment of a substitute to hold an approver's authority."""

    __tablename__ = "acting_appointment"
    __table_args__ = (sa.Index("ix_acting_role_dates", "role", "effective_date", "end_date"),)

    role: str = Field(max_length=50)
    holder_staff_id: str | None = Field(default=None, max_length=64, index=True)
    acting_staff_id: str = Field(
        sa_column=sa.Column(
            sa.String(64), sa.ForeignKey("staff_member.staff_id", ondelete="CASCADE"), nullable=False
        ),
    )
    effective_date: date
    end_date: date
    authority_source: str | None = Field(default=None, max_length=255)


class ApprovalDelegation(UUIDBase, TimestampMixin, table=True):
    """An approver's delegation of their approval authority to a colleague."""

    __tablename__ = "approval_delegation"

    delegator_staff_id: str = Field(max_length=64, index=True)
    delegatee_staff_id: str = Field(
        sa_column=sa.Column(
            sa.String(64), sa.ForeignKey("staff_member.staff_id", ondelete="CASCADE"), nullable=False
        ),
    )
    start_date: date
    end_date: date
    status: str = Field(default=DelegationStatus.ACTIVE, max_length=20)
    revoked_at: datetime | None = Field(default=None, sa_type=utc_timestamp_type())  # ty: ignore[invalid-argument-type]
