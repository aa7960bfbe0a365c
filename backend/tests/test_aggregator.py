"""Unit tests for status aggregation over approval steps."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from leave_approval.models.enums import ApproverRole, LeaveStatus, StepStatus
from leave_approval.schemas.approval import ApprovalStepView
from leave_approval.services.aggregator import (
    ESCALATION_OVERDUE,
    ESCALATION_UNRESOLVED,
    EscalationRule,
    apply_transition,
    check_escalation,
    compute_leave_status,
    get_next_approvers,
    is_final_level,
    is_valid_leave_transition,
    previous_levels_completed,
    requires_external_clearance,
    working_days_between,
)

STANDARD_ROLES = [
    ApproverRole.SUPERVISOR,
    ApproverRole.UNIT_HEAD,
    ApproverRole.HEAD_OF_DEPARTMENT,
    ApproverRole.HR_OFFICER,
    ApproverRole.CHIEF_DIRECTOR,
]


def _steps(*statuses: StepStatus, roles: list[ApproverRole] | None = None) -> list[ApprovalStepView]:
    roles = roles or STANDARD_ROLES
    return [
        ApprovalStepView(level=i, approver_role=roles[i - 1], status=status, previous_level_completed=i == 1)
        for i, status in enumerate(statuses, start=1)
    ]


P = StepStatus.PENDING
A = StepStatus.APPROVED
R = StepStatus.REJECTED
D = StepStatus.DELEGATED
S = StepStatus.SKIPPED

# ---------------------------------------------------------------------------
# compute_leave_status
# ---------------------------------------------------------------------------


def test_all_pending_is_pending() -> None:
    assert compute_leave_status(_steps(P, P, P, P, P)) == LeaveStatus.PENDING


def test_partially_approved_is_pending() -> None:
    assert compute_leave_status(_steps(A, A, P, P, P)) == LeaveStatus.PENDING


def test_all_approved_is_approved() -> None:
    assert compute_leave_status(_steps(A, A, A, A, A)) == LeaveStatus.APPROVED


def test_skipped_levels_count_as_resolved() -> None:
    assert compute_leave_status(_steps(A, S, A, A, A)) == LeaveStatus.APPROVED


def test_delegated_level_keeps_leave_pending() -> None:
    assert compute_leave_status(_steps(A, D, P, P, P)) == LeaveStatus.PENDING


@pytest.mark.parametrize(
    "statuses",
    [(R, P, P, P, P), (A, A, R, P, P), (A, A, A, A, R), (P, R, A, A, A)],
)
def test_any_rejection_wins(statuses: tuple[StepStatus, ...]) -> None:
    assert compute_leave_status(_steps(*statuses)) == LeaveStatus.REJECTED


def test_empty_steps_is_pending() -> None:
    assert compute_leave_status([]) == LeaveStatus.PENDING


def test_chief_director_leave_is_recorded_after_hr_director() -> None:
    steps = _steps(A, roles=[ApproverRole.HR_DIRECTOR])
    assert compute_leave_status(steps, is_chief_director_leave=True) == LeaveStatus.RECORDED


def test_chief_director_leave_pending_until_hr_director() -> None:
    steps = _steps(P, roles=[ApproverRole.HR_DIRECTOR])
    assert compute_leave_status(steps, is_chief_director_leave=True) == LeaveStatus.PENDING


def test_chief_director_leave_is_never_approved() -> None:
    steps = _steps(A, A, roles=[ApproverRole.HR_OFFICER, ApproverRole.CHIEF_DIRECTOR])
    assert compute_leave_status(steps, is_chief_director_leave=True) == LeaveStatus.RECORDED


def test_chief_director_leave_rejection_still_wins() -> None:
    steps = _steps(R, roles=[ApproverRole.HR_DIRECTOR])
    assert compute_leave_status(steps, is_chief_director_leave=True) == LeaveStatus.REJECTED


# ---------------------------------------------------------------------------
# get_next_approvers
# ---------------------------------------------------------------------------


def test_next_approver_is_lowest_pending() -> None:
    nxt = get_next_approvers(_steps(A, P, P, P, P))
    assert [s.level for s in nxt] == [2]


def test_next_approver_includes_delegated_step() -> None:
    nxt = get_next_approvers(_steps(A, A, D, P, P))
    assert [s.level for s in nxt] == [3]


def test_no_next_approver_when_rejected() -> None:
    assert get_next_approvers(_steps(A, R, P, P, P)) == []


def test_no_next_approver_when_finished() -> None:
    assert get_next_approvers(_steps(A, A, A, A, A)) == []


# ---------------------------------------------------------------------------
# apply_transition and helpers
# ---------------------------------------------------------------------------


def test_apply_transition_returns_new_list() -> None:
    steps = _steps(P, P, P, P, P)
    updated = apply_transition(steps, 1, A, comments="Fine")
    assert steps[0].status == P
    assert updated[0].status == A
    assert updated[0].comments == "Fine"
    assert updated[1].previous_level_completed is True
    assert updated[2].previous_level_completed is False


def test_apply_transition_skip_opens_next_level() -> None:
    updated = apply_transition(_steps(A, P, P, P, P), 2, S)
    assert updated[2].previous_level_completed is True


def test_previous_levels_completed() -> None:
    steps = _steps(A, S, P, P, P)
    assert previous_levels_completed(steps, 1)
    assert previous_levels_completed(steps, 3)
    assert not previous_levels_completed(steps, 4)


def test_is_final_level() -> None:
    steps = _steps(P, P, P)
    assert is_final_level(steps, 3)
    assert not is_final_level(steps, 2)
    assert not is_final_level([], 1)


# ---------------------------------------------------------------------------
# Leave status transitions
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("current", "new", "expected"),
    [
        (LeaveStatus.DRAFT, LeaveStatus.PENDING, True),
        (LeaveStatus.PENDING, LeaveStatus.APPROVED, True),
        (LeaveStatus.PENDING, LeaveStatus.RECORDED, True),
        (LeaveStatus.PENDING, LeaveStatus.REJECTED, True),
        (LeaveStatus.REJECTED, LeaveStatus.PENDING, True),
        (LeaveStatus.APPROVED, LeaveStatus.CANCELLED, True),
        (LeaveStatus.APPROVED, LeaveStatus.PENDING, False),
        (LeaveStatus.RECORDED, LeaveStatus.APPROVED, False),
        (LeaveStatus.CANCELLED, LeaveStatus.PENDING, False),
        (LeaveStatus.DRAFT, LeaveStatus.APPROVED, False),
    ],
)
def test_leave_transitions(current: LeaveStatus, new: LeaveStatus, expected: bool) -> None:
    assert is_valid_leave_transition(current, new) is expected


def test_external_clearance_leave_types() -> None:
    assert requires_external_clearance("Study")
    assert requires_external_clearance("Secondment")
    assert not requires_external_clearance("Annual")


# ---------------------------------------------------------------------------
# Escalation
# ---------------------------------------------------------------------------

OPENED = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
RULE = EscalationRule(after_working_days=10)


def _open_step(**overrides: object) -> ApprovalStepView:
    values: dict[str, object] = {
        "level": 1,
        "approver_role": ApproverRole.SUPERVISOR,
        "approver_staff_id": "MFA-010",
        "previous_level_completed": True,
        "created_at": OPENED,
    }
    values.update(overrides)
    return ApprovalStepView(**values)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (date(2026, 3, 2), date(2026, 3, 9), 5),
        (date(2026, 3, 6), date(2026, 3, 9), 1),
        (date(2026, 3, 7), date(2026, 3, 8), 0),
        (date(2026, 3, 2), date(2026, 3, 2), 0),
        (date(2026, 3, 9), date(2026, 3, 2), 0),
    ],
)
def test_working_days_between(start: date, end: date, expected: int) -> None:
    assert working_days_between(start, end) == expected


def test_escalation_due_after_ten_working_days() -> None:
    step = _open_step()
    early = check_escalation(step, datetime(2026, 3, 13, 17, 0, tzinfo=UTC), RULE)
    assert early.should_escalate is False
    assert early.working_days_pending == 9

    due = check_escalation(step, datetime(2026, 3, 16, 8, 0, tzinfo=UTC), RULE)
    assert due.should_escalate is True
    assert due.reason == ESCALATION_OVERDUE
    assert due.working_days_pending == 10


def test_escalation_clock_starts_when_level_opens() -> None:
    step = _open_step(level=2, updated_at=datetime(2026, 3, 9, 9, 0, tzinfo=UTC))
    assert check_escalation(step, datetime(2026, 3, 16, 8, 0, tzinfo=UTC), RULE).should_escalate is False


def test_unresolved_approver_escalates_at_once() -> None:
    check = check_escalation(_open_step(approver_staff_id=None), OPENED, RULE)
    assert check.should_escalate is True
    assert check.reason == ESCALATION_UNRESOLVED


@pytest.mark.parametrize(
    "overrides",
    [
        {"previous_level_completed": False},
        {"status": StepStatus.APPROVED},
        {"status": StepStatus.DELEGATED},
    ],
)
def test_only_open_pending_levels_escalate(overrides: dict[str, object]) -> None:
    step = _open_step(approver_staff_id=None, **overrides)
    assert check_escalation(step, datetime(2026, 4, 30, tzinfo=UTC), RULE).should_escalate is False


def test_escalation_accepts_naive_timestamps() -> None:
    step = _open_step(created_at=datetime(2026, 3, 2, 9, 0))
    assert check_escalation(step, datetime(2026, 3, 16, 8, 0, tzinfo=UTC), RULE).should_escalate is True
