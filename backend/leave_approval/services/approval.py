# ruff: noqa: TC003
"""Leave submission and approval actions.

Ties the selector, step ledger, guards and aggregator together and writes
the aggregate status back onto the leave request.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import select
from sqlmodel import col

from leave_approval.config import get_settings
from leave_approval.exceptions import (
    AppError,
    InvalidTransition,
    MissingActingOfficer,
    MissingMandatoryValidation,
    NotFoundError,
    RoleMismatch,
    SelfApprovalViolation,
    SequentialApprovalViolation,
    WorkflowConfigurationError,
)
from leave_approval.models.base import now_utc
from leave_approval.models.enums import (
    ApprovalAction,
    ApproverRole,
    AuditAction,
    AuditEntityType,
    LeaveStatus,
    LeaveType,
    StepStatus,
)
from leave_approval.models.leave import LeaveRequest
from leave_approval.schemas.approval import LeaveApprovalState
from leave_approval.schemas.staff import StaffOrganizationalInfo
from leave_approval.services import guards
from leave_approval.services.aggregator import (
    ESCALATION_OVERDUE,
    EscalationRule,
    check_escalation,
    compute_leave_status,
    get_next_approvers,
    is_final_level,
    is_valid_leave_transition,
    requires_external_clearance,
)
from leave_approval.services.approver import get_active_staff, resolve_approver
from leave_approval.services.audit import model_to_audit_dict, query_audit_log, write_audit_log
from leave_approval.services.ledger import create_steps, get_steps, reassign_step, update_step
from leave_approval.services.notifier import ApproverNotification, get_notifier
from leave_approval.services.org_structure import classify, requires_acting_officer
from leave_approval.services.selector import SelectionRequest, select_workflow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_approval.models.staff import StaffMember
    from leave_approval.schemas.approval import ApprovalStepView, SubmitLeavePayload
    from leave_approval.schemas.audit import AuditLogListResponse
    from leave_approval.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS: dict[ApprovalAction, AuditAction] = {
    ApprovalAction.APPROVE: AuditAction.APPROVE,
    ApprovalAction.REJECT: AuditAction.REJECT,
    ApprovalAction.DELEGATE: AuditAction.DELEGATE,
    ApprovalAction.SKIP: AuditAction.SKIP,
}

_VIOLATION_ERRORS: dict[str, type[AppError]] = {
    guards.SELF_APPROVAL_NOT_ALLOWED: SelfApprovalViolation,
    guards.SEQUENTIAL_APPROVAL_REQUIRED: SequentialApprovalViolation,
    guards.ROLE_MISMATCH: RoleMismatch,
    guards.HR_VALIDATION_REQUIRED: MissingMandatoryValidation,
    guards.ACTING_OFFICER_REQUIRED: MissingActingOfficer,
}

_FINAL_LEAVE_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.RECORDED})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def to_organizational_info(staff: StaffMember) -> StaffOrganizationalInfo:
    """Routing view of a staff record."""
    return StaffOrganizationalInfo(
        staff_id=staff.staff_id,
        duty_station=staff.duty_station or None,
        directorate=staff.directorate,
        division=staff.division,
        unit=staff.unit,
        sub_unit=staff.sub_unit,
        immediate_supervisor_id=staff.immediate_supervisor_id,
        manager_id=staff.manager_id,
        grade=staff.grade,
        position=staff.position,
    )


def _raise_violation(violation: guards.GuardViolation) -> None:
    if violation.error_code == guards.STEP_NOT_FOUND:
        raise NotFoundError(violation.message)
    if violation.error_code in (guards.LEAVE_LOCKED, guards.INVALID_TRANSITION):
        raise InvalidTransition(violation.message, error_code=violation.error_code)
    if violation.error_code == guards.REJECTION_COMMENTS_REQUIRED:
        raise AppError(
            violation.message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=violation.error_code,
        )
    raise _VIOLATION_ERRORS[violation.error_code](violation.message)


async def _get_leave_or_404(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    query = select(LeaveRequest).where(col(LeaveRequest.id) == leave_request_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError(f"Leave request {leave_request_id} not found")
    return leave


def _build_state(leave: LeaveRequest, steps: list[ApprovalStepView]) -> LeaveApprovalState:
    return LeaveApprovalState(
        leave_request_id=leave.id,
        staff_id=leave.staff_id,
        leave_type=LeaveType(leave.leave_type),
        days=leave.days,
        status=LeaveStatus(leave.status),
        is_chief_director_leave=leave.is_chief_director_leave,
        requires_external_clearance=requires_external_clearance(leave.leave_type),
        workflow_source=leave.workflow_source,
        steps=steps,
        next_approvers=get_next_approvers(steps),
    )


async def _notify(state: LeaveApprovalState) -> None:
    await get_notifier().notify_next(
        ApproverNotification(
            leave_request_id=state.leave_request_id,
            requester_staff_id=state.staff_id,
            approvers=state.next_approvers,
            leave_status=state.status,
        )
    )


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


async def submit_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitLeavePayload,
) -> LeaveApprovalState:
    """Create a pending leave request with its approval chain.

    Raises ``WorkflowConfigurationError`` when no chain can be determined;
    a request is never accepted without approvers.
    """
    staff = await get_active_staff(session, payload.staff_id)
    if staff is None:
        raise NotFoundError(f"Staff member {payload.staff_id} not found")

    staff_info = to_organizational_info(staff)
    organization_id = payload.organization_id or auth.organization_id
    selection = await select_workflow(
        session,
        SelectionRequest(staff_info, payload.leave_type.value, payload.days, organization_id),
    )
    if selection is None or not selection.levels:
        raise WorkflowConfigurationError(
            f"Cannot determine an approval workflow for staff {staff.staff_id}; check their unit and position"
        )

    leave = LeaveRequest(
        staff_id=staff.staff_id,
        organization_id=organization_id,
        leave_type=payload.leave_type.value,
        days=payload.days,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        status=LeaveStatus.PENDING.value,
        is_chief_director_leave=classify(staff_info).is_chief_director,
        workflow_definition_id=selection.workflow_definition_id,
        workflow_source=selection.source,
        submitted_at=now_utc(),
    )
    session.add(leave)
    await session.flush()

    await create_steps(session, leave.id, selection.levels)

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        entity_name=f"{staff.full_name} {leave.leave_type}",
        organization_id=organization_id,
        action=AuditAction.SUBMIT,
        after_json={
            **model_to_audit_dict(leave),
            "levels": [lv.model_dump(mode="json") for lv in selection.levels],
        },
    )

    await session.commit()
    logger.info("Leave %s submitted for %s via %s", leave.id, staff.staff_id, selection.source)

    state = _build_state(leave, await get_steps(session, leave.id))
    await _notify(state)
    return state


async def get_approval_state(session: AsyncSession, leave_request_id: uuid.UUID) -> LeaveApprovalState:
    """Steps, aggregate status and next approver of a leave request."""
    leave = await _get_leave_or_404(session, leave_request_id)
    return _build_state(leave, await get_steps(session, leave_request_id))


async def get_leave_audit_trail(
    session: AsyncSession,
    leave_request_id: uuid.UUID,
    *,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Submission, step actions and status changes of one leave request, newest first."""
    await _get_leave_or_404(session, leave_request_id)
    steps = await get_steps(session, leave_request_id)
    entity_ids: list[uuid.UUID | str] = [leave_request_id, *(s.id for s in steps if s.id is not None)]
    return await query_audit_log(session, entity_ids=entity_ids, offset=offset, limit=limit)


async def act_on_step(
    session: AsyncSession,
    auth: AuthContext,
    leave_request_id: uuid.UUID,
    level: int,
    action: ApprovalAction,
    *,
    comments: str | None = None,
    delegate_to: str | None = None,
) -> LeaveApprovalState:
    """Approve, reject, delegate or skip one level of a leave request.

    Every guard must pass first. The step is written with an optimistic
    version check and the recomputed status is written back to the request.
    """
    settings = get_settings()
    leave = await _get_leave_or_404(session, leave_request_id, for_update=True)
    steps = await get_steps(session, leave_request_id)
    step = next((s for s in steps if s.level == level), None)
    if step is None:
        raise NotFoundError(f"Approval level {level} not found for leave request {leave_request_id}")

    current_status = LeaveStatus(leave.status)
    if current_status not in (LeaveStatus.PENDING, LeaveStatus.REJECTED):
        raise InvalidTransition(f"Leave request is {current_status.value}; approval actions are closed")

    requester = await get_active_staff(session, leave.staff_id)
    post = guards.RequesterPost()
    if requester is not None:
        post = guards.RequesterPost(
            requires_acting_officer=requires_acting_officer(
                requester.position, requester.grade, requester.unit, settings.acting_officer_units
            ),
            acting_officer_id=requester.acting_officer_id,
            position=requester.position,
        )

    delegate = None
    if action == ApprovalAction.DELEGATE:
        if not delegate_to:
            raise AppError(
                "delegate_to is required to delegate a step",
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                error_code="DELEGATE_REQUIRED",
            )
        delegate = await get_active_staff(session, delegate_to)
        if delegate is None:
            raise NotFoundError(f"Delegate {delegate_to} not found")

    attempt = guards.ActionAttempt(
        action=action,
        level=level,
        actor_staff_id=auth.actor_staff_id,
        actor_role=auth.role,
        requester_staff_id=leave.staff_id,
        comments=comments,
        delegate_to=delegate_to,
    )
    violation = guards.check_action(
        steps,
        attempt,
        post=post,
        rejection_comment_min_length=settings.rejection_comment_min_length,
    )
    if violation is not None:
        logger.info("Refused %s on leave %s level %d: %s", action.value, leave.id, level, violation.error_code)
        _raise_violation(violation)

    actor = await get_active_staff(session, auth.actor_staff_id)
    await update_step(
        session,
        leave.id,
        level,
        guards.ACTION_TARGET_STATUS[action],
        expected=step,
        actor_user_id=auth.user_id,
        actor_name=actor.full_name if actor else auth.email,
        comments=comments,
        delegate_to=delegate.staff_id if delegate else None,
        delegate_name=delegate.full_name if delegate else None,
    )

    updated_steps = await get_steps(session, leave.id)
    after_step = next(s for s in updated_steps if s.level == level)
    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.APPROVAL_STEP,
        entity_id=after_step.id or f"{leave.id}:{level}",
        entity_name=f"Level {level} {step.approver_role.value}",
        organization_id=leave.organization_id,
        action=_AUDIT_ACTIONS[action],
        before_json=step.model_dump(mode="json"),
        after_json=after_step.model_dump(mode="json"),
    )

    new_status = compute_leave_status(updated_steps, is_chief_director_leave=leave.is_chief_director_leave)
    if new_status != current_status:
        if not is_valid_leave_transition(current_status, new_status):
            raise InvalidTransition(f"Leave request cannot move from {current_status.value} to {new_status.value}")
        before = model_to_audit_dict(leave)
        leave.status = new_status.value
        if new_status in _FINAL_LEAVE_STATUSES:
            leave.decided_at = now_utc()
        session.add(leave)
        await session.flush()
        await write_audit_log(
            session,
            actor=auth,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=leave.id,
            organization_id=leave.organization_id,
            action=AuditAction.STATUS_CHANGE,
            before_json=before,
            after_json=model_to_audit_dict(leave),
        )
        logger.info("Leave %s is now %s", leave.id, new_status.value)

    await session.commit()

    state = _build_state(leave, updated_steps)
    await _notify(state)
    return state


async def escalate_step(
    session: AsyncSession,
    auth: AuthContext,
    leave_request_id: uuid.UUID,
    level: int,
    *,
    now: datetime | None = None,
) -> LeaveApprovalState:
    """Move an overdue or unassigned level on to the next approver who can act.

    An ordinary level is skipped and the following level is pointed at its
    currently resolved approver. HR validation and the final level are never
    skipped; they are reassigned in place to the HR Director instead.
    """
    settings = get_settings()
    now = now or now_utc()
    leave = await _get_leave_or_404(session, leave_request_id, for_update=True)
    if leave.status != LeaveStatus.PENDING:
        raise InvalidTransition(f"Leave request is {leave.status}; only pending requests can be escalated")

    steps = await get_steps(session, leave.id)
    step = next((s for s in steps if s.level == level), None)
    if step is None:
        raise NotFoundError(f"Approval level {level} not found for leave request {leave_request_id}")

    check = check_escalation(step, now, EscalationRule(after_working_days=settings.escalation_working_days))
    if not check.should_escalate:
        raise InvalidTransition(
            f"Level {level} is not due for escalation ({check.working_days_pending} working days pending)",
            error_code="ESCALATION_NOT_DUE",
        )

    requester = await get_active_staff(session, leave.staff_id)
    unit = requester.unit if requester else None
    in_place = step.approver_role == ApproverRole.HR_OFFICER or is_final_level(steps, level)
    if in_place:
        target = step
        resolved = await resolve_approver(session, ApproverRole.HR_DIRECTOR, leave.staff_id, unit, today=now.date())
        if resolved is not None and resolved.staff_id == step.approver_staff_id:
            resolved = None
    else:
        target = next(s for s in steps if s.level > level)
        resolved = await resolve_approver(session, target.approver_role, leave.staff_id, unit, today=now.date())

    target_staff_id: str | None = None
    target_name: str | None = None
    if resolved is not None:
        target_staff_id, target_name = resolved.staff_id, resolved.name
    elif not in_place:
        target_staff_id, target_name = target.approver_staff_id, target.approver_name
    if target_staff_id is None:
        raise AppError(
            f"No approver is available to take over level {level}",
            status_code=status.HTTP_409_CONFLICT,
            error_code="ESCALATION_TARGET_NOT_FOUND",
        )

    if check.reason == ESCALATION_OVERDUE:
        note = f"Escalated after {check.working_days_pending} working days pending"
    else:
        note = "Escalated because no approver could be resolved"
    if not in_place:
        actor = await get_active_staff(session, auth.actor_staff_id)
        await update_step(
            session,
            leave.id,
            level,
            StepStatus.SKIPPED,
            expected=step,
            actor_user_id=auth.user_id,
            actor_name=actor.full_name if actor else auth.email,
            comments=note,
        )
    if target_staff_id != target.approver_staff_id:
        await reassign_step(
            session,
            leave.id,
            target.level,
            expected=target,
            approver_staff_id=target_staff_id,
            approver_name=target_name,
        )

    updated_steps = await get_steps(session, leave.id)
    after_step = next(s for s in updated_steps if s.level == level)
    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.APPROVAL_STEP,
        entity_id=after_step.id or f"{leave.id}:{level}",
        entity_name=f"Level {level} {step.approver_role.value}",
        organization_id=leave.organization_id,
        action=AuditAction.ESCALATE,
        before_json=step.model_dump(mode="json"),
        after_json={
            **after_step.model_dump(mode="json"),
            "escalated_to": target_staff_id,
            "escalated_to_level": target.level,
            "reason": check.reason,
            "note": note,
            "working_days_pending": check.working_days_pending,
        },
    )
    await session.commit()
    logger.info("Leave %s level %d escalated to %s at level %d", leave.id, level, target_staff_id, target.level)

    state = _build_state(leave, updated_steps)
    await _notify(state)
    return state
