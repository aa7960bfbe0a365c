from __future__ import annotations

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    user_id: str
    staff_id: str | None = None
    role: str = "EMPLOYEE"
    email: str | None = None
    organization_id: str | None = None

    @property
    def actor_staff_id(self) -> str:
        """Staff number used for identity checks, falling back to the user id."""
        return self.staff_id or self.user_id
