from __future__ import annotations

import enum


class ApproverRole(enum.StrEnum):
    """Organisational role that must act on an approval level."""

    SUPERVISOR = "SUPERVISOR"
    UNIT_HEAD = "UNIT_HEAD"
    HEAD_OF_DEPARTMENT = "HEAD_OF_DEPARTMENT"
    HEAD_OF_INDEPENDENT_UNIT = "HEAD_OF_INDEPENDENT_UNIT"
    DIRECTOR = "DIRECTOR"
    HR_OFFICER = "HR_OFFICER"
    HR_DIRECTOR = "HR_DIRECTOR"
    CHIEF_DIRECTOR = "CHIEF_DIRECTOR"


class StepStatus(enum.StrEnum):
    """State of a single approval step."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELEGATED = "delegated"
    SKIPPED = "skipped"


class LeaveStatus(enum.StrEnum):
    """State machine for a leave request."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    RECORDED = "recorded"


class LeaveType(enum.StrEnum):
    """Leave categories accepted on submission."""

    ANNUAL = "Annual"
    SICK = "Sick"
    UNPAID = "Unpaid"
    SPECIAL_SERVICE = "SpecialService"
    TRAINING = "Training"
    STUDY = "Study"
    MATERNITY = "Maternity"
    PATERNITY = "Paternity"
    COMPASSIONATE = "Compassionate"


class DutyStation(enum.StrEnum):
    """Where a staff member is posted."""

    HQ = "HQ"
    REGION = "Region"
    DISTRICT = "District"
    AGENCY = "Agency"


class ApprovalAction(enum.StrEnum):
    """Action an approver can take on a step."""

    APPROVE = "approve"
    REJECT = "reject"
    DELEGATE = "delegate"
    SKIP = "skip"


class ApproverSource(enum.StrEnum):
    """How a concrete approver was found."""

    ASSIGNED = "assigned"
    ACTING = "acting"
    DELEGATION = "delegation"
    ROLE_BASED = "role-based"


class DelegationStatus(enum.StrEnum):
    """Lifecycle of an approval delegation."""

    ACTIVE = "active"
    REVOKED = "revoked"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_REQUEST = "LEAVE_REQUEST"
    APPROVAL_STEP = "APPROVAL_STEP"
    WORKFLOW_DEFINITION = "WORKFLOW_DEFINITION"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    DELEGATE = "DELEGATE"
    SKIP = "SKIP"
    STATUS_CHANGE = "STATUS_CHANGE"
    CREATE = "CREATE"
    CREATE_VERSION = "CREATE_VERSION"
    ACTIVATE = "ACTIVATE"
    DEACTIVATE = "DEACTIVATE"
    SET_DEFAULT = "SET_DEFAULT"
    DELETE = "DELETE"
    ESCALATE = "ESCALATE"
