# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from leave_approval.api.deps import AuthDep, WorkflowAdminDep
from leave_approval.db import SessionDep
from leave_approval.models.enums import ApprovalAction
from leave_approval.schemas.approval import (
    DelegateStepPayload,
    LeaveApprovalState,
    StepActionPayload,
    SubmitLeavePayload,
)
from leave_approval.schemas.audit import AuditLogListResponse
from leave_approval.services import approval as approval_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])

Level = Annotated[int, Path(ge=1)]


@leaves_router.post("", response_model=LeaveApprovalState, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    payload: SubmitLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveApprovalState:
    """Submit a leave request and generate its approval chain."""
    return await approval_service.submit_leave_request(session, auth, payload)


@leaves_router.get("/{leave_request_id}/approval", response_model=LeaveApprovalState)
async def get_leave_approval(
    leave_request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveApprovalState:
    """Approval steps, aggregate status and next approver of a leave request."""
    return await approval_service.get_approval_state(session, leave_request_id)


@leaves_router.post("/{leave_request_id}/steps/{level}/approve", response_model=LeaveApprovalState)
async def approve_step(
    leave_request_id: uuid.UUID,
    level: Level,
    session: SessionDep,
    auth: AuthDep,
    payload: StepActionPayload | None = None,
) -> LeaveApprovalState:
    """Approve one level of a leave request."""
    return await approval_service.act_on_step(
        session,
        auth,
        leave_request_id,
        level,
        ApprovalAction.APPROVE,
        comments=payload.comments if payload else None,
    )


@leaves_router.post("/{leave_request_id}/steps/{level}/reject", response_model=LeaveApprovalState)
async def reject_step(
    leave_request_id: uuid.UUID,
    level: Level,
    payload: StepActionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveApprovalState:
    """Reject a leave request at one level; this ends the workflow."""
    return await approval_service.act_on_step(
        session, auth, leave_request_id, level, ApprovalAction.REJECT, comments=payload.comments
    )


@leaves_router.post("/{leave_request_id}/steps/{level}/delegate", response_model=LeaveApprovalState)
async def delegate_step(
    leave_request_id: uuid.UUID,
    level: Level,
    payload: DelegateStepPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveApprovalState:
    """Hand one level over to another staff member."""
    return await approval_service.act_on_step(
        session,
        auth,
        leave_request_id,
        level,
        ApprovalAction.DELEGATE,
        comments=payload.comments,
        delegate_to=payload.delegate_to,
    )


@leaves_router.post("/{leave_request_id}/steps/{level}/skip", response_model=LeaveApprovalState)
async def skip_step(
    leave_request_id: uuid.UUID,
    level: Level,
    session: SessionDep,
    auth: AuthDep,
    payload: StepActionPayload | None = None,
) -> LeaveApprovalState:
    """Skip a level that the workflow marks as skippable."""
    return await approval_service.act_on_step(
        session,
        auth,
        leave_request_id,
        level,
        ApprovalAction.SKIP,
        comments=payload.comments if payload else None,
    )


@leaves_router.post("/{leave_request_id}/steps/{level}/escalate", response_model=LeaveApprovalState)
async def escalate_step(
    leave_request_id: uuid.UUID,
    level: Level,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> LeaveApprovalState:
    """Move an overdue or unassigned level on to the next approver who can act."""
    return await approval_service.escalate_step(session, auth, leave_request_id, level)


@leaves_router.get("/{leave_request_id}/audit", response_model=AuditLogListResponse)
async def get_leave_audit_trail(
    leave_request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Audit history of a leave request and its approval steps, newest first."""
    return await approval_service.get_leave_audit_trail(session, leave_request_id, offset=offset, limit=limit)
