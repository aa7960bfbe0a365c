from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select
from sqlmodel import col

from leave_approval.models.audit import AuditLog
from leave_approval.schemas.audit import AuditLogEntryResponse, AuditLogListResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from leave_approval.models.enums import AuditAction, AuditEntityType
    from leave_approval.schemas.auth import AuthContext


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


async def write_audit_log(
    session: AsyncSession,
    *,
    actor: AuthContext,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID | str,
    action: AuditAction,
    entity_name: str | None = None,
    organization_id: str | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        organization_id=organization_id or actor.organization_id,
        actor_id=actor.user_id,
        actor_role=actor.role,
        actor_email=actor.email,
        entity_type=entity_type.value,
        entity_id=str(entity_id),
        entity_name=entity_name,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry


async def query_audit_log(
    session: AsyncSession,
    *,
    organization_id: str | None = None,
    entity_type: str | None = None,
    entity_ids: Sequence[uuid.UUID | str] | None = None,
    action: str | None = None,
    actor_id: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Audit entries matching every given filter, newest first.

    Organisation-scoped queries also return entries written without an
    organisation (shared catalogue definitions).
    """
    filters = []
    if organization_id is not None:
        filters.append(
            or_(col(AuditLog.organization_id) == organization_id, col(AuditLog.organization_id).is_(None))
        )
    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_ids is not None:
        filters.append(col(AuditLog.entity_id).in_([str(e) for e in entity_ids]))
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog)
        .where(*filters)
        .order_by(col(AuditLog.created_at).desc(), col(AuditLog.id))
        .offset(offset)
        .limit(limit)
    )
    return AuditLogListResponse(
        items=[AuditLogEntryResponse.model_validate(e) for e in result.scalars().all()],
        total=total,
    )
