"""Pure functions over a leave request's approval steps.

Nothing here touches the database; callers pass in the current step list and
get back a status or a new list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from leave_approval.models.enums import ApproverRole, LeaveStatus, StepStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from leave_approval.schemas.approval import ApprovalStepView

# Steps that no longer block later levels.
RESOLVED_STEP_STATUSES = frozenset({StepStatus.APPROVED, StepStatus.SKIPPED})
# Steps still waiting on someone.
OUTSTANDING_STEP_STATUSES = frozenset({StepStatus.PENDING, StepStatus.DELEGATED})

EXTERNAL_CLEARANCE_LEAVE_TYPES = frozenset(
    {"Study", "StudyWithPay", "StudyWithoutPay", "LeaveOfAbsence", "Secondment"}
)

LEAVE_STATUS_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.DRAFT: frozenset({LeaveStatus.PENDING}),
    LeaveStatus.PENDING: frozenset(
        {LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED, LeaveStatus.RECORDED}
    ),
    LeaveStatus.REJECTED: frozenset({LeaveStatus.PENDING}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.CANCELLED}),
    LeaveStatus.CANCELLED: frozenset(),
    LeaveStatus.RECORDED: frozenset(),
}


def compute_leave_status(steps: Sequence[ApprovalStepView], *, is_chief_director_leave: bool = False) -> LeaveStatus:
    """Aggregate status of a leave request from its steps.

    Any rejection wins. Chief Director leave becomes ``recorded`` once the
    HR Director has approved it.
    """
    if any(s.status == StepStatus.REJECTED for s in steps):
        return LeaveStatus.REJECTED
    if is_chief_director_leave and any(
        s.approver_role == ApproverRole.HR_DIRECTOR and s.status == StepStatus.APPROVED for s in steps
    ):
        return LeaveStatus.RECORDED
    if steps and all(s.status in RESOLVED_STEP_STATUSES for s in steps):
        return LeaveStatus.RECORDED if is_chief_director_leave else LeaveStatus.APPROVED
    return LeaveStatus.PENDING


def get_next_approvers(steps: Sequence[ApprovalStepView]) -> list[ApprovalStepView]:
    """The lowest outstanding step, or nothing once the chain is finished or rejected."""
    if any(s.status == StepStatus.REJECTED for s in steps):
        return []
    outstanding = [s for s in steps if s.status in OUTSTANDING_STEP_STATUSES]
    if not outstanding:
        return []
    return [min(outstanding, key=lambda s: s.level)]


def previous_levels_completed(steps: Sequence[ApprovalStepView], level: int) -> bool:
    return all(s.status in RESOLVED_STEP_STATUSES for s in steps if s.level < level)


def apply_transition(
    steps: Sequence[ApprovalStepView],
    level: int,
    new_status: StepStatus,
    **changes: object,
) -> list[ApprovalStepView]:
    """Return a new step list with ``level`` moved to ``new_status``.

    ``previous_level_completed`` is recomputed for every step.
    """
    updated = [s.model_copy(update={"status": new_status, **changes}) if s.level == level else s for s in steps]
    return [
        s.model_copy(update={"previous_level_completed": previous_levels_completed(updated, s.level)})
        for s in updated
    ]


def is_final_level(steps: Sequence[ApprovalStepView], level: int) -> bool:
    return bool(steps) and level == max(s.level for s in steps)


def is_valid_leave_transition(current: LeaveStatus, new: LeaveStatus) -> bool:
    return new in LEAVE_STATUS_TRANSITIONS.get(current, frozenset())


def requires_external_clearance(leave_type: str) -> bool:
    """Leave types governed by the Public Services Commission."""
    return leave_type in EXTERNAL_CLEARANCE_LEAVE_TYPES


# ---------------------------------------------------------------------------
# Escalation
# ---------------------------------------------------------------------------

ESCALATION_OVERDUE = "overdue"
ESCALATION_UNRESOLVED = "unresolved_approver"


@dataclass(frozen=True)
class EscalationRule:
    """How long an open step may wait before it can be escalated."""

    after_working_days: int = 10


@dataclass(frozen=True)
class EscalationCheck:
    should_escalate: bool
    reason: str | None = None
    working_days_pending: int = 0


def working_days_between(start: date, end: date) -> int:
    """Weekdays after ``start`` up to and including ``end``."""
    if end <= start:
        return 0
    full_weeks, remainder = divmod((end - start).days, 7)
    days = full_weeks * 5
    for offset in range(1, remainder + 1):
        if (start + timedelta(days=offset)).weekday() < 5:
            days += 1
    return days


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def check_escalation(step: ApprovalStepView, now: datetime, rule: EscalationRule) -> EscalationCheck:
    """Whether an open step is due for escalation.

    Only a pending step whose earlier levels are complete qualifies. It is
    due at once when no approver was resolved for it, otherwise once it has
    waited ``rule.after_working_days`` working days since it opened.
    """
    if step.status != StepStatus.PENDING or not step.previous_level_completed:
        return EscalationCheck(should_escalate=False)

    opened_at = step.updated_at or step.created_at
    waited = working_days_between(_as_utc(opened_at).date(), _as_utc(now).date()) if opened_at else 0
    if step.approver_staff_id is None:
        return EscalationCheck(should_escalate=True, reason=ESCALATION_UNRESOLVED, working_days_pending=waited)
    if waited >= rule.after_working_days:
        return EscalationCheck(should_escalate=True, reason=ESCALATION_OVERDUE, working_days_pending=waited)
    return EscalationCheck(should_escalate=False, working_days_pending=waited)
