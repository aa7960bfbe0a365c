"""Tests for audit log writing and querying."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from leave_approval.models.enums import AuditAction, AuditEntityType
from leave_approval.schemas.auth import AuthContext
from leave_approval.services.audit import query_audit_log, write_audit_log

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ADMIN_HEADERS = {"X-User-Id": "hr-admin-1", "X-Role": "HR_DIRECTOR", "X-Organization-Id": "MINISTRY-1"}
EMPLOYEE_HEADERS = {"X-User-Id": "MFA-001", "X-Role": "EMPLOYEE"}

HR_DIRECTOR = AuthContext(user_id="HR-001", role="HR_DIRECTOR", email="hr-001@mofad.gov.gh")


async def _write(
    session: AsyncSession,
    action: AuditAction,
    *,
    entity_type: AuditEntityType = AuditEntityType.WORKFLOW_DEFINITION,
    entity_id: uuid.UUID | str | None = None,
    organization_id: str | None = None,
    actor: AuthContext = HR_DIRECTOR,
) -> None:
    await write_audit_log(
        session,
        actor=actor,
        entity_type=entity_type,
        entity_id=entity_id or uuid.uuid4(),
        action=action,
        organization_id=organization_id,
    )
    await session.flush()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


async def test_write_audit_log_records_actor(db_session: AsyncSession) -> None:
    entity_id = uuid.uuid4()
    entry = await write_audit_log(
        db_session,
        actor=HR_DIRECTOR,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=entity_id,
        entity_name="Standard Staff Leave",
        action=AuditAction.CREATE,
        after_json={"name": "Standard Staff Leave"},
    )
    await db_session.flush()

    assert entry.actor_id == "HR-001"
    assert entry.actor_role == "HR_DIRECTOR"
    assert entry.actor_email == "hr-001@mofad.gov.gh"
    assert entry.entity_id == str(entity_id)
    assert entry.action == "CREATE"


async def test_query_filters_by_action_and_entity(db_session: AsyncSession) -> None:
    target = uuid.uuid4()
    await _write(db_session, AuditAction.CREATE, entity_id=target)
    await _write(db_session, AuditAction.ACTIVATE, entity_id=target)
    await _write(db_session, AuditAction.CREATE)

    by_entity = await query_audit_log(db_session, entity_ids=[target])
    assert by_entity.total == 2

    created = await query_audit_log(db_session, action="CREATE")
    assert created.total == 2
    assert all(e.action == "CREATE" for e in created.items)


async def test_query_by_organisation_includes_shared_entries(db_session: AsyncSession) -> None:
    await _write(db_session, AuditAction.CREATE, organization_id="MINISTRY-1")
    await _write(db_session, AuditAction.CREATE, organization_id="AGENCY-1")
    await _write(db_session, AuditAction.CREATE)

    result = await query_audit_log(db_session, organization_id="MINISTRY-1")
    assert result.total == 2
    assert {e.organization_id for e in result.items} == {"MINISTRY-1", None}


async def test_query_paginates(db_session: AsyncSession) -> None:
    for _ in range(5):
        await _write(db_session, AuditAction.CREATE)

    page = await query_audit_log(db_session, offset=2, limit=2)
    assert page.total == 5
    assert len(page.items) == 2


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_audit_log_endpoint_returns_catalogue_changes(async_client: AsyncClient) -> None:
    payload = {"name": "HR Only", "steps": [{"step_order": 1, "approver_role": "HR_OFFICER"}]}
    resp = await async_client.post("/workflows", json=payload, headers=ADMIN_HEADERS)
    assert resp.status_code == 201

    resp = await async_client.get(
        "/audit-log", params={"entity_type": "workflow_definition", "action": "create"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["entity_name"] == "HR Only"
    assert data["items"][0]["actor_id"] == "hr-admin-1"


async def test_audit_log_endpoint_requires_admin(async_client: AsyncClient) -> None:
    resp = await async_client.get("/audit-log", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403
    assert resp.json()["error_code"] == "FORBIDDEN"


async def test_audit_log_endpoint_rejects_bad_limit(async_client: AsyncClient) -> None:
    resp = await async_client.get("/audit-log", params={"limit": 500}, headers=ADMIN_HEADERS)
    assert resp.status_code == 422
