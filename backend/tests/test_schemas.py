"""Unit tests for workflow conditions and API payload schemas."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import TypeAdapter, ValidationError

from leave_approval.models.enums import ApproverRole, LeaveType
from leave_approval.schemas.approval import ApprovalLevel, DelegateStepPayload, SubmitLeavePayload
from leave_approval.schemas.auth import AuthContext
from leave_approval.schemas.workflow import (
    AllOfCondition,
    Condition,
    CreateWorkflowRequest,
    CreateWorkflowVersionRequest,
    DayRangeCondition,
    FlagCondition,
    MembershipCondition,
)

_adapter: TypeAdapter[Condition] = TypeAdapter(Condition)


def _step(order: int, role: str = "SUPERVISOR") -> dict:  # type: ignore[type-arg]
    return {"step_order": order, "approver_role": role}


# ---------------------------------------------------------------------------
# Condition union
# ---------------------------------------------------------------------------


def test_condition_membership_parses() -> None:
    c = _adapter.validate_python({"kind": "in", "field": "grade", "values": ["A", "B"]})
    assert isinstance(c, MembershipCondition)
    assert c.values == ["A", "B"]


def test_condition_membership_requires_values() -> None:
    with pytest.raises(ValidationError):
        _adapter.validate_python({"kind": "in", "field": "grade", "values": []})


def test_condition_membership_rejects_unknown_field() -> None:
    with pytest.raises(ValidationError):
        _adapter.validate_python({"kind": "in", "field": "salary", "values": ["x"]})


def test_condition_day_range_parses() -> None:
    c = _adapter.validate_python({"kind": "days", "min_days": 1, "max_days": 10})
    assert isinstance(c, DayRangeCondition)
    assert c.max_days == 10


def test_condition_day_range_needs_a_bound() -> None:
    with pytest.raises(ValidationError, match="At least one"):
        _adapter.validate_python({"kind": "days"})


def test_condition_day_range_min_above_max() -> None:
    with pytest.raises(ValidationError, match="must not exceed"):
        _adapter.validate_python({"kind": "days", "min_days": 10, "max_days": 2})


def test_condition_flag_defaults_to_true() -> None:
    c = _adapter.validate_python({"kind": "flag", "flag": "is_director"})
    assert isinstance(c, FlagCondition)
    assert c.value is True


def test_condition_flag_rejects_unknown_flag() -> None:
    with pytest.raises(ValidationError):
        _adapter.validate_python({"kind": "flag", "flag": "is_minister"})


def test_condition_all_nests() -> None:
    c = _adapter.validate_python(
        {
            "kind": "all",
            "conditions": [
                {"kind": "flag", "flag": "is_hrmd", "value": False},
                {"kind": "all", "conditions": [{"kind": "days", "max_days": 5}]},
            ],
        }
    )
    assert isinstance(c, AllOfCondition)
    assert isinstance(c.conditions[1], AllOfCondition)


def test_condition_unknown_kind() -> None:
    with pytest.raises(ValidationError):
        _adapter.validate_python({"kind": "any", "conditions": []})


# ---------------------------------------------------------------------------
# Workflow requests
# ---------------------------------------------------------------------------


def test_create_workflow_request_valid() -> None:
    req = CreateWorkflowRequest(name="Standard Staff Leave", steps=[_step(1), _step(2, "HR_OFFICER")])
    assert req.is_active is True
    assert req.is_default is False
    assert req.steps[1].approver_role == ApproverRole.HR_OFFICER
    assert req.steps[0].can_delegate is True


def test_create_workflow_request_duplicate_step_order() -> None:
    with pytest.raises(ValidationError, match="step_order values must be unique"):
        CreateWorkflowRequest(name="Bad", steps=[_step(1), _step(1, "UNIT_HEAD")])


def test_create_workflow_request_needs_steps() -> None:
    with pytest.raises(ValidationError):
        CreateWorkflowRequest(name="Empty", steps=[])


def test_create_workflow_request_unknown_role() -> None:
    with pytest.raises(ValidationError):
        CreateWorkflowRequest(name="Bad", steps=[_step(1, "MINISTER")])


def test_create_version_request_all_optional() -> None:
    req = CreateWorkflowVersionRequest()
    assert req.steps is None
    assert req.conditions is None


def test_create_version_request_duplicate_step_order() -> None:
    with pytest.raises(ValidationError, match="step_order values must be unique"):
        CreateWorkflowVersionRequest(steps=[_step(2), _step(2)])


# ---------------------------------------------------------------------------
# Leave payloads
# ---------------------------------------------------------------------------


def test_submit_leave_payload_valid() -> None:
    payload = SubmitLeavePayload(
        staff_id="MFA-001",
        leave_type=LeaveType.ANNUAL,
        days=5,
        start_date=date(2026, 3, 2),
        end_date=date(2026, 3, 6),
    )
    assert payload.reason is None


def test_submit_leave_payload_end_before_start() -> None:
    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        SubmitLeavePayload(
            staff_id="MFA-001",
            leave_type=LeaveType.ANNUAL,
            days=5,
            start_date=date(2026, 3, 6),
            end_date=date(2026, 3, 2),
        )


def test_submit_leave_payload_positive_days() -> None:
    with pytest.raises(ValidationError):
        SubmitLeavePayload(
            staff_id="MFA-001",
            leave_type=LeaveType.SICK,
            days=0,
            start_date=date(2026, 3, 2),
            end_date=date(2026, 3, 2),
        )


def test_submit_leave_payload_unknown_leave_type() -> None:
    with pytest.raises(ValidationError):
        SubmitLeavePayload.model_validate(
            {
                "staff_id": "MFA-001",
                "leave_type": "Sabbatical",
                "days": 3,
                "start_date": "2026-03-02",
                "end_date": "2026-03-04",
            }
        )


def test_delegate_payload_requires_delegate() -> None:
    with pytest.raises(ValidationError):
        DelegateStepPayload(delegate_to="")


def test_approval_level_starts_at_one() -> None:
    with pytest.raises(ValidationError):
        ApprovalLevel(level=0, approver_role=ApproverRole.SUPERVISOR)


def test_auth_context_actor_falls_back_to_user_id() -> None:
    assert AuthContext(user_id="u-1").actor_staff_id == "u-1"
    assert AuthContext(user_id="u-1", staff_id="MFA-010").actor_staff_id == "MFA-010"
