# ruff: noqa: TC003
"""Configurable workflow catalogue: matching, conversion and versioning."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import func, or_, select
from sqlmodel import col

from leave_approval.exceptions import AppError, DuplicateWorkflow, NotFoundError
from leave_approval.models.base import now_utc
from leave_approval.models.enums import ApproverRole, AuditAction, AuditEntityType
from leave_approval.models.workflow import WorkflowDefinition, WorkflowStep
from leave_approval.schemas.approval import ApprovalLevel
from leave_approval.schemas.workflow import (
    WorkflowListResponse,
    WorkflowResponse,
    WorkflowStepInput,
    WorkflowStepResponse,
)
from leave_approval.services.audit import write_audit_log
from leave_approval.services.conditions import MatchContext, dump_condition, matches, parse_condition

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_approval.schemas.auth import AuthContext
    from leave_approval.schemas.workflow import CreateWorkflowRequest, CreateWorkflowVersionRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------


def _build_step_response(step: WorkflowStep) -> WorkflowStepResponse:
    return WorkflowStepResponse(
        id=step.id,
        step_order=step.step_order,
        approver_role=ApproverRole(step.approver_role),
        approver_role_type=step.approver_role_type,
        is_required=step.is_required,
        can_skip=step.can_skip,
        can_delegate=step.can_delegate,
        conditions=parse_condition(step.conditions_json),
        description=step.description,
    )


def _build_workflow_response(definition: WorkflowDefinition, steps: Sequence[WorkflowStep]) -> WorkflowResponse:
    return WorkflowResponse(
        id=definition.id,
        name=definition.name,
        description=definition.description,
        version=definition.version,
        organization_id=definition.organization_id,
        organization_name=definition.organization_name,
        is_active=definition.is_active,
        is_default=definition.is_default,
        conditions=parse_condition(definition.conditions_json),
        created_by=definition.created_by,
        created_by_name=definition.created_by_name,
        previous_version_id=definition.previous_version_id,
        activated_at=definition.activated_at,
        deactivated_at=definition.deactivated_at,
        created_at=definition.created_at,
        steps=[_build_step_response(s) for s in steps],
    )


def _version_snapshot(definition: WorkflowDefinition) -> dict[str, object]:
    return {
        "name": definition.name,
        "version": definition.version,
        "organization_id": definition.organization_id,
        "is_active": definition.is_active,
        "is_default": definition.is_default,
        "previous_version_id": str(definition.previous_version_id) if definition.previous_version_id else None,
    }


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _visible_to(organization_id: str | None) -> ColumnElement[bool]:
    if organization_id is None:
        return col(WorkflowDefinition.organization_id).is_(None)
    return or_(
        col(WorkflowDefinition.organization_id).is_(None),
        col(WorkflowDefinition.organization_id) == organization_id,
    )


def _same_lineage(name: str, organization_id: str | None) -> tuple[ColumnElement[bool], ...]:
    org_clause = (
        col(WorkflowDefinition.organization_id).is_(None)
        if organization_id is None
        else col(WorkflowDefinition.organization_id) == organization_id
    )
    return (col(WorkflowDefinition.name) == name, org_clause)


async def _get_definition(session: AsyncSession, workflow_id: uuid.UUID) -> WorkflowDefinition:
    definition = await session.get(WorkflowDefinition, workflow_id)
    if definition is None:
        raise NotFoundError(f"Workflow definition {workflow_id} not found")
    return definition


async def _get_steps(session: AsyncSession, workflow_id: uuid.UUID) -> list[WorkflowStep]:
    result = await session.execute(
        select(WorkflowStep).where(col(WorkflowStep.workflow_id) == workflow_id).order_by(col(WorkflowStep.step_order))
    )
    return list(result.scalars().all())


async def _active_siblings(
    session: AsyncSession,
    name: str,
    organization_id: str | None,
    exclude_id: uuid.UUID,
) -> list[WorkflowDefinition]:
    result = await session.execute(
        select(WorkflowDefinition).where(
            *_same_lineage(name, organization_id),
            col(WorkflowDefinition.id) != exclude_id,
            col(WorkflowDefinition.is_active).is_(True),
        )
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


async def find_matching_workflow(
    session: AsyncSession,
    ctx: MatchContext,
    organization_id: str | None = None,
) -> tuple[WorkflowDefinition, list[WorkflowStep]] | None:
    """First active definition visible to the organisation whose conditions match.

    Default-flagged definitions are tried first, then newest first.
    """
    result = await session.execute(
        select(WorkflowDefinition)
        .where(col(WorkflowDefinition.is_active).is_(True), _visible_to(organization_id))
        .order_by(col(WorkflowDefinition.is_default).desc(), col(WorkflowDefinition.created_at).desc())
    )
    for definition in result.scalars().all():
        if matches(parse_condition(definition.conditions_json), ctx):
            return definition, await _get_steps(session, definition.id)
    return None


def convert_workflow_to_levels(
    steps: Iterable[WorkflowStep],
    ctx: MatchContext,
    held_roles: frozenset[ApproverRole] = frozenset(),
) -> list[ApprovalLevel]:
    """Turn catalogue steps into pending approval levels numbered 1..N.

    A step whose own conditions fail is dropped only when it may be skipped.
    Roles the requester holds are never included.
    """
    levels: list[ApprovalLevel] = []
    for step in sorted(steps, key=lambda s: s.step_order):
        role = ApproverRole(step.approver_role)
        if role in held_roles:
            continue
        if step.can_skip and not matches(parse_condition(step.conditions_json), ctx):
            continue
        levels.append(
            ApprovalLevel(
                level=len(levels) + 1,
                approver_role=role,
                can_skip=step.can_skip,
                can_delegate=step.can_delegate,
            )
        )
    return levels


# ---------------------------------------------------------------------------
# Catalogue management
# ---------------------------------------------------------------------------


def _new_steps(workflow_id: uuid.UUID, steps: Iterable[WorkflowStepInput]) -> list[WorkflowStep]:
    return [
        WorkflowStep(
            workflow_id=workflow_id,
            step_order=s.step_order,
            approver_role=s.approver_role.value,
            approver_role_type=s.approver_role_type,
            is_required=s.is_required,
            can_skip=s.can_skip,
            can_delegate=s.can_delegate,
            conditions_json=dump_condition(s.conditions),
            description=s.description,
        )
        for s in steps
    ]


def _copy_steps(steps: Iterable[WorkflowStep]) -> list[WorkflowStepInput]:
    return [
        WorkflowStepInput(
            step_order=s.step_order,
            approver_role=ApproverRole(s.approver_role),
            approver_role_type=s.approver_role_type,
            is_required=s.is_required,
            can_skip=s.can_skip,
            can_delegate=s.can_delegate,
            conditions=parse_condition(s.conditions_json),
            description=s.description,
        )
        for s in steps
    ]


async def _deactivate(
    session: AsyncSession,
    auth: AuthContext,
    siblings: Iterable[WorkflowDefinition],
    reason: str,
) -> None:
    now = now_utc()
    for sibling in siblings:
        before = _version_snapshot(sibling)
        sibling.is_active = False
        sibling.deactivated_at = now
        session.add(sibling)
        await write_audit_log(
            session,
            actor=auth,
            entity_type=AuditEntityType.WORKFLOW_DEFINITION,
            entity_id=sibling.id,
            entity_name=sibling.name,
            organization_id=sibling.organization_id,
            action=AuditAction.DEACTIVATE,
            before_json=before,
            after_json={**_version_snapshot(sibling), "reason": reason},
        )


async def create_workflow_definition(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateWorkflowRequest,
) -> WorkflowResponse:
    """Create version 1 of a new workflow definition with its steps."""
    existing = await session.execute(
        select(col(WorkflowDefinition.id)).where(
            *_same_lineage(payload.name, payload.organization_id),
            col(WorkflowDefinition.version) == 1,
        )
    )
    if existing.first() is not None:
        raise DuplicateWorkflow(f"Workflow '{payload.name}' version 1 already exists for this organization")

    now = now_utc()
    definition = WorkflowDefinition(
        name=payload.name,
        description=payload.description,
        version=1,
        organization_id=payload.organization_id,
        organization_name=payload.organization_name,
        is_active=payload.is_active,
        is_default=payload.is_default,
        conditions_json=dump_condition(payload.conditions),
        created_by=auth.user_id,
        created_by_name=auth.email,
        activated_at=now if payload.is_active else None,
    )
    session.add(definition)
    await session.flush()

    steps = _new_steps(definition.id, payload.steps)
    session.add_all(steps)

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=definition.id,
        entity_name=definition.name,
        organization_id=definition.organization_id,
        action=AuditAction.CREATE,
        after_json={**_version_snapshot(definition), "step_count": len(steps)},
    )

    await session.commit()
    logger.info("Created workflow %s v%d (%s)", definition.name, definition.version, definition.id)
    return await get_workflow_definition(session, definition.id)


async def create_workflow_version(
    session: AsyncSession,
    auth: AuthContext,
    workflow_id: uuid.UUID,
    payload: CreateWorkflowVersionRequest,
) -> WorkflowResponse:
    """Create the next version from an existing one and make it the active version.

    Omitted fields are copied from the source version. A version keeps its
    lineage name; a renamed workflow is a new definition. Every other version
    of the same name and organisation is deactivated in the same transaction.
    """
    source = await _get_definition(session, workflow_id)
    if payload.name is not None and payload.name != source.name:
        raise AppError(
            f"A new version cannot rename workflow '{source.name}'; create a new workflow instead",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="RENAME_NOT_ALLOWED",
        )
    source_steps = await _get_steps(session, workflow_id)
    name = source.name

    siblings = await _active_siblings(session, name, source.organization_id, exclude_id=source.id)
    if source.is_active:
        siblings.append(source)
    await _deactivate(session, auth, siblings, reason="Replaced by newer version")

    max_result = await session.execute(
        select(func.max(col(WorkflowDefinition.version))).where(*_same_lineage(name, source.organization_id))
    )
    next_version = max(max_result.scalar_one_or_none() or 0, source.version) + 1

    definition = WorkflowDefinition(
        name=name,
        description=payload.description if payload.description is not None else source.description,
        version=next_version,
        organization_id=source.organization_id,
        organization_name=payload.organization_name or source.organization_name,
        is_active=True,
        is_default=False,
        conditions_json=(
            dump_condition(payload.conditions) if payload.conditions is not None else source.conditions_json
        ),
        created_by=auth.user_id,
        created_by_name=auth.email,
        previous_version_id=source.id,
        activated_at=now_utc(),
    )
    session.add(definition)
    await session.flush()

    step_inputs = payload.steps if payload.steps is not None else _copy_steps(source_steps)
    session.add_all(_new_steps(definition.id, step_inputs))

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=definition.id,
        entity_name=definition.name,
        organization_id=definition.organization_id,
        action=AuditAction.CREATE_VERSION,
        before_json=_version_snapshot(source),
        after_json=_version_snapshot(definition),
    )

    await session.commit()
    logger.info("Created workflow %s v%d from v%d", definition.name, definition.version, source.version)
    return await get_workflow_definition(session, definition.id)


async def activate_workflow_version(
    session: AsyncSession,
    auth: AuthContext,
    workflow_id: uuid.UUID,
) -> WorkflowResponse:
    """Activate one version and deactivate all its siblings atomically."""
    definition = await _get_definition(session, workflow_id)
    before = _version_snapshot(definition)

    siblings = await _active_siblings(session, definition.name, definition.organization_id, exclude_id=definition.id)
    await _deactivate(session, auth, siblings, reason=f"Replaced by version {definition.version}")

    definition.is_active = True
    definition.activated_at = now_utc()
    definition.deactivated_at = None
    session.add(definition)

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=definition.id,
        entity_name=definition.name,
        organization_id=definition.organization_id,
        action=AuditAction.ACTIVATE,
        before_json=before,
        after_json=_version_snapshot(definition),
    )

    await session.commit()
    logger.info("Activated workflow %s v%d", definition.name, definition.version)
    return await get_workflow_definition(session, definition.id)


async def set_default_workflow(
    session: AsyncSession,
    auth: AuthContext,
    workflow_id: uuid.UUID,
) -> WorkflowResponse:
    """Flag one version as default, clearing the flag on its siblings."""
    definition = await _get_definition(session, workflow_id)
    before = _version_snapshot(definition)

    result = await session.execute(
        select(WorkflowDefinition).where(
            *_same_lineage(definition.name, definition.organization_id),
            col(WorkflowDefinition.id) != definition.id,
            col(WorkflowDefinition.is_default).is_(True),
        )
    )
    for sibling in result.scalars().all():
        sibling.is_default = False
        session.add(sibling)
    definition.is_default = True
    session.add(definition)

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=definition.id,
        entity_name=definition.name,
        organization_id=definition.organization_id,
        action=AuditAction.SET_DEFAULT,
        before_json=before,
        after_json=_version_snapshot(definition),
    )

    await session.commit()
    logger.info("Workflow %s v%d is now the default", definition.name, definition.version)
    return await get_workflow_definition(session, definition.id)


async def delete_workflow_definition(
    session: AsyncSession,
    auth: AuthContext,
    workflow_id: uuid.UUID,
) -> None:
    """Delete a definition; its steps go with it."""
    definition = await _get_definition(session, workflow_id)
    for step in await _get_steps(session, workflow_id):
        await session.delete(step)

    await write_audit_log(
        session,
        actor=auth,
        entity_type=AuditEntityType.WORKFLOW_DEFINITION,
        entity_id=definition.id,
        entity_name=definition.name,
        organization_id=definition.organization_id,
        action=AuditAction.DELETE,
        before_json=_version_snapshot(definition),
    )
    await session.delete(definition)
    await session.commit()
    logger.info("Deleted workflow %s v%d", definition.name, definition.version)


async def get_workflow_definition(session: AsyncSession, workflow_id: uuid.UUID) -> WorkflowResponse:
    definition = await _get_definition(session, workflow_id)
    await session.refresh(definition)
    return _build_workflow_response(definition, await _get_steps(session, workflow_id))


async def list_workflow_definitions(
    session: AsyncSession,
    organization_id: str | None = None,
    *,
    active_only: bool = False,
) -> WorkflowListResponse:
    """Definitions visible to an organisation.

    All versions are ordered by name then newest version; active ones put the
    default first.
    """
    query = select(WorkflowDefinition).where(_visible_to(organization_id))
    if active_only:
        query = query.where(col(WorkflowDefinition.is_active).is_(True)).order_by(
            col(WorkflowDefinition.is_default).desc(), col(WorkflowDefinition.name)
        )
    else:
        query = query.order_by(col(WorkflowDefinition.name), col(WorkflowDefinition.version).desc())

    result = await session.execute(query)
    items = [_build_workflow_response(d, await _get_steps(session, d.id)) for d in result.scalars().all()]
    return WorkflowListResponse(items=items, total=len(items))
