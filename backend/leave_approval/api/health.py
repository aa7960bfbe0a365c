import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlmodel import col

from leave_approval.config import get_settings
from leave_approval.db import SessionDep
from leave_approval.models.workflow import WorkflowDefinition

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status plus the size of the live workflow catalogue."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    active_workflows: int | None


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report database reachability and how many catalogue workflows are active.

    With no active workflows every request is routed by the built-in rules.
    """
    settings = get_settings()
    status: Literal["ok", "degraded"] = "ok"
    active_workflows: int | None = None

    try:
        result = await session.execute(
            select(func.count()).select_from(WorkflowDefinition).where(col(WorkflowDefinition.is_active).is_(True))
        )
        active_workflows = result.scalar_one()
    except Exception:
        logger.exception("Health check: database connectivity failed")
        status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        active_workflows=active_workflows,
    )
