from sqlmodel import SQLModel

from leave_approval.models.approval import ApprovalStep
from leave_approval.models.audit import AuditLog
from leave_approval.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_approval.models.enums import (
    ApprovalAction,
    ApproverRole,
    ApproverSource,
    AuditAction,
    AuditEntityType,
    DelegationStatus,
    DutyStation,
    LeaveStatus,
    LeaveType,
    StepStatus,
)
from leave_approval.models.leave import LeaveRequest
from leave_approval.models.staff import ActingAppointment, ApprovalDelegation, StaffMember
from leave_approval.models.workflow import WorkflowDefinition, WorkflowStep

__all__ = [
    "ActingAppointment",
    "ApprovalAction",
    "ApprovalDelegation",
    "ApprovalStep",
    "ApproverRole",
    "ApproverSource",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "DelegationStatus",
    "DutyStation",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "SQLModel",
    "StaffMember",
    "StepStatus",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "WorkflowDefinition",
    "WorkflowStep",
]
