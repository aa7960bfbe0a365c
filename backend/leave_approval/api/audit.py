from __future__ import annotations

from fastapi import APIRouter, Query

from leave_approval.api.deps import WorkflowAdminDep
from leave_approval.db import SessionDep
from leave_approval.schemas.audit import AuditLogListResponse
from leave_approval.services import audit as audit_service

audit_router = APIRouter(tags=["audit"])


@audit_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: WorkflowAdminDep,
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_id: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries for the caller's organisation (HR Director or admin only)."""
    return await audit_service.query_audit_log(
        session,
        organization_id=auth.organization_id,
        entity_type=entity_type.upper() if entity_type else None,
        entity_ids=[entity_id] if entity_id else None,
        action=action.upper() if action else None,
        actor_id=actor_id,
        offset=offset,
        limit=limit,
    )
