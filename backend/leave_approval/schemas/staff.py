from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from leave_approval.models.enums import ApproverSource, DutyStation


class StaffOrganizationalInfo(BaseModel):
    """Read-only organisational view of a staff member used for routing."""

    model_config = ConfigDict(frozen=True)

    staff_id: str = Field(min_length=1)
    duty_station: DutyStation | None = None
    directorate: str | None = None
    division: str | None = None
    unit: str | None = None
    sub_unit: str | None = None
    immediate_supervisor_id: str | None = None
    manager_id: str | None = None
    grade: str = ""
    position: str = ""


class ResolvedApprover(BaseModel):
    """Concrete person who must act for a role."""

    model_config = ConfigDict(frozen=True)

    staff_id: str
    name: str
    role: str
    source: ApproverSource
