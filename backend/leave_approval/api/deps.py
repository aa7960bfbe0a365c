# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from leave_approval.exceptions import AppError
from leave_approval.schemas.auth import AuthContext

WORKFLOW_ADMIN_ROLES = frozenset({"HR_DIRECTOR", "SYSTEM_ADMIN"})


async def get_auth_context(
    x_user_id: str = Header(min_length=1),
    x_staff_id: str | None = Header(default=None),
    x_role: str = Header(default="EMPLOYEE"),
    x_email: str | None = Header(default=None),
    x_organization_id: str | None = Header(default=None),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(
        user_id=x_user_id,
        staff_id=x_staff_id,
        role=x_role.upper(),
        email=x_email,
        organization_id=x_organization_id,
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_workflow_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require a role allowed to manage the workflow catalogue."""
    if auth.role not in WORKFLOW_ADMIN_ROLES:
        raise AppError(
            "HR Director or system administrator access required",
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="FORBIDDEN",
        )
    return auth


WorkflowAdminDep = Annotated[AuthContext, Depends(require_workflow_admin)]
