"""Validation guards for approval actions.

Each guard is a pure predicate returning a ``GuardViolation`` or ``None``;
``check_action`` runs them in order and reports the first violation. The
approval service turns a violation into the matching exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from leave_approval.models.enums import ApprovalAction, ApproverRole, StepStatus
from leave_approval.services.aggregator import is_final_level

if TYPE_CHECKING:
    from collections.abc import Sequence

    from leave_approval.schemas.approval import ApprovalStepView

LEAVE_LOCKED = "LEAVE_LOCKED"
INVALID_TRANSITION = "INVALID_TRANSITION"
SELF_APPROVAL_NOT_ALLOWED = "SELF_APPROVAL_NOT_ALLOWED"
SEQUENTIAL_APPROVAL_REQUIRED = "SEQUENTIAL_APPROVAL_REQUIRED"
ROLE_MISMATCH = "ROLE_MISMATCH"
REJECTION_COMMENTS_REQUIRED = "REJECTION_COMMENTS_REQUIRED"
HR_VALIDATION_REQUIRED = "HR_VALIDATION_REQUIRED"
ACTING_OFFICER_REQUIRED = "ACTING_OFFICER_REQUIRED"
STEP_NOT_FOUND = "STEP_NOT_FOUND"

ACTION_TARGET_STATUS: dict[ApprovalAction, StepStatus] = {
    ApprovalAction.APPROVE: StepStatus.APPROVED,
    ApprovalAction.REJECT: StepStatus.REJECTED,
    ApprovalAction.DELEGATE: StepStatus.DELEGATED,
    ApprovalAction.SKIP: StepStatus.SKIPPED,
}

STEP_TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.APPROVED, StepStatus.REJECTED, StepStatus.DELEGATED, StepStatus.SKIPPED}),
    StepStatus.DELEGATED: frozenset({StepStatus.APPROVED, StepStatus.REJECTED}),
    StepStatus.APPROVED: frozenset(),
    StepStatus.REJECTED: frozenset(),
    StepStatus.SKIPPED: frozenset(),
}


@dataclass(frozen=True)
class GuardViolation:
    """Why an approval action was refused."""

    error_code: str
    message: str


@dataclass(frozen=True)
class ActionAttempt:
    """Who is trying to do what to which level."""

    action: ApprovalAction
    level: int
    actor_staff_id: str
    actor_role: str
    requester_staff_id: str
    comments: str | None = None
    delegate_to: str | None = None


@dataclass(frozen=True)
class RequesterPost:
    """Acting-officer facts about the requester's own post."""

    requires_acting_officer: bool = False
    acting_officer_id: str | None = None
    position: str | None = None


def is_valid_step_transition(current: StepStatus, new: StepStatus) -> bool:
    return new in STEP_TRANSITIONS.get(current, frozenset())


def _is_finalising(steps: Sequence[ApprovalStepView], step: ApprovalStepView, attempt: ActionAttempt) -> bool:
    return attempt.action == ApprovalAction.APPROVE and is_final_level(steps, step.level)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def check_not_locked(steps: Sequence[ApprovalStepView]) -> GuardViolation | None:
    rejected = [s.level for s in steps if s.status == StepStatus.REJECTED]
    if rejected:
        return GuardViolation(LEAVE_LOCKED, f"Leave request was rejected at level {rejected[0]}; no further actions")
    return None


def check_step_transition(step: ApprovalStepView, attempt: ActionAttempt) -> GuardViolation | None:
    target = ACTION_TARGET_STATUS[attempt.action]
    if not is_valid_step_transition(step.status, target):
        return GuardViolation(INVALID_TRANSITION, f"Cannot move level {step.level} from {step.status} to {target}")
    if attempt.action == ApprovalAction.SKIP and not step.can_skip:
        return GuardViolation(INVALID_TRANSITION, f"Level {step.level} ({step.approver_role}) cannot be skipped")
    if attempt.action == ApprovalAction.SKIP and step.approver_role == ApproverRole.HR_OFFICER:
        return GuardViolation(INVALID_TRANSITION, f"Level {step.level} is HR Officer validation and cannot be skipped")
    if attempt.action == ApprovalAction.DELEGATE and not step.can_delegate:
        return GuardViolation(INVALID_TRANSITION, f"Level {step.level} ({step.approver_role}) cannot be delegated")
    return None


def check_self_approval(attempt: ActionAttempt) -> GuardViolation | None:
    if attempt.actor_staff_id == attempt.requester_staff_id:
        return GuardViolation(SELF_APPROVAL_NOT_ALLOWED, "You cannot act on your own leave request")
    if attempt.action == ApprovalAction.DELEGATE and attempt.delegate_to == attempt.requester_staff_id:
        return GuardViolation(SELF_APPROVAL_NOT_ALLOWED, "A step cannot be delegated to the requester")
    return None


def check_sequential(step: ApprovalStepView) -> GuardViolation | None:
    if not step.previous_level_completed:
        return GuardViolation(
            SEQUENTIAL_APPROVAL_REQUIRED,
            f"Level {step.level} cannot be acted on until every earlier level is approved",
        )
    return None


def check_role_match(step: ApprovalStepView, attempt: ActionAttempt) -> GuardViolation | None:
    """The delegate owns a delegated step; otherwise role or resolved approver must match."""
    if step.status == StepStatus.DELEGATED:
        if attempt.actor_staff_id == step.delegated_to:
            return None
        return GuardViolation(ROLE_MISMATCH, f"Level {step.level} was delegated to {step.delegated_to}")
    if attempt.actor_role == step.approver_role or attempt.actor_staff_id == step.approver_staff_id:
        return None
    return GuardViolation(
        ROLE_MISMATCH,
        f"Level {step.level} requires {step.approver_role}; you are acting as {attempt.actor_role}",
    )


def check_rejection_comments(attempt: ActionAttempt, min_length: int) -> GuardViolation | None:
    if attempt.action != ApprovalAction.REJECT:
        return None
    if len((attempt.comments or "").strip()) < min_length:
        return GuardViolation(
            REJECTION_COMMENTS_REQUIRED,
            f"A rejection needs comments of at least {min_length} characters",
        )
    return None


def check_hr_validation(
    steps: Sequence[ApprovalStepView],
    step: ApprovalStepView,
    attempt: ActionAttempt,
) -> GuardViolation | None:
    if not _is_finalising(steps, step, attempt) or step.approver_role != ApproverRole.CHIEF_DIRECTOR:
        return None
    hr_steps = [s for s in steps if s.approver_role == ApproverRole.HR_OFFICER]
    if any(s.status != StepStatus.APPROVED for s in hr_steps):
        return GuardViolation(
            HR_VALIDATION_REQUIRED,
            "HR Officer validation is mandatory and must be approved before final approval",
        )
    return None


def check_acting_officer(
    steps: Sequence[ApprovalStepView],
    step: ApprovalStepView,
    attempt: ActionAttempt,
    post: RequesterPost,
) -> GuardViolation | None:
    if not _is_finalising(steps, step, attempt) or not post.requires_acting_officer:
        return None
    if not post.acting_officer_id:
        return GuardViolation(
            ACTING_OFFICER_REQUIRED,
            f"Acting officer must be assigned for {post.position or 'this position'} before leave can be approved",
        )
    return None


def check_action(
    steps: Sequence[ApprovalStepView],
    attempt: ActionAttempt,
    *,
    post: RequesterPost | None = None,
    rejection_comment_min_length: int = 0,
) -> GuardViolation | None:
    """Run every guard against the attempted action; return the first violation."""
    locked = check_not_locked(steps)
    if locked is not None:
        return locked

    step = next((s for s in steps if s.level == attempt.level), None)
    if step is None:
        return GuardViolation(STEP_NOT_FOUND, f"Approval level {attempt.level} not found")
    for violation in (
        check_step_transition(step, attempt),
        check_self_approval(attempt),
        check_sequential(step),
        check_role_match(step, attempt),
        check_rejection_comments(attempt, rejection_comment_min_length),
        check_hr_validation(steps, step, attempt),
        check_acting_officer(steps, step, attempt, post or RequesterPost()),
    ):
        if violation is not None:
            return violation
    return None
