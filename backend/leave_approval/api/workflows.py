# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from leave_approval.api.deps import AuthDep, WorkflowAdminDep
from leave_approval.db import SessionDep
from leave_approval.schemas.workflow import (
    CreateWorkflowRequest,
    CreateWorkflowVersionRequest,
    WorkflowListResponse,
    WorkflowResponse,
)
from leave_approval.services import workflow as workflow_service

workflows_router = APIRouter(prefix="/workflows", tags=["workflows"])


@workflows_router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    payload: CreateWorkflowRequest,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> WorkflowResponse:
    """Create a new workflow definition (version 1)."""
    return await workflow_service.create_workflow_definition(session, auth, payload)


@workflows_router.get("", response_model=WorkflowListResponse)
async def list_workflows(
    session: SessionDep,
    auth: AuthDep,
    active: bool = Query(default=False),
) -> WorkflowListResponse:
    """List workflow definitions visible to the caller's organisation."""
    return await workflow_service.list_workflow_definitions(session, auth.organization_id, active_only=active)


@workflows_router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> WorkflowResponse:
    """Get one workflow definition with its steps."""
    return await workflow_service.get_workflow_definition(session, workflow_id)


@workflows_router.post(
    "/{workflow_id}/versions",
    response_model=WorkflowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_workflow_version(
    workflow_id: uuid.UUID,
    payload: CreateWorkflowVersionRequest,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> WorkflowResponse:
    """Create and activate the next version of a workflow."""
    return await workflow_service.create_workflow_version(session, auth, workflow_id, payload)


@workflows_router.post("/{workflow_id}/activate", response_model=WorkflowResponse)
async def activate_workflow(
    workflow_id: uuid.UUID,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> WorkflowResponse:
    """Activate a version, deactivating its siblings."""
    return await workflow_service.activate_workflow_version(session, auth, workflow_id)


@workflows_router.post("/{workflow_id}/default", response_model=WorkflowResponse)
async def set_default_workflow(
    workflow_id: uuid.UUID,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> WorkflowResponse:
    """Mark a version as the default."""
    return await workflow_service.set_default_workflow(session, auth, workflow_id)


@workflows_router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: uuid.UUID,
    session: SessionDep,
    auth: WorkflowAdminDep,
) -> Response:
    """Delete a workflow definition and its steps."""
    await workflow_service.delete_workflow_definition(session, auth, workflow_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
