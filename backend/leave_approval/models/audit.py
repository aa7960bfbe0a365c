# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_approval.models.base import UUIDBase, now_utc, utc_timestamp_type


class AuditLog(UUIDBase, table=True):
    """Immutable record of every step transition and catalogue mutation."""

    __tablename__ = "audit_log"
    __table_args__ = (sa.Index("ix_audit_entity", "entity_type", "entity_id"),)

    organization_id: str | None = Field(default=None, max_length=64, index=True)
    actor_id: str = Field(max_length=64)
    actor_role: str | None = Field(default=None, max_length=50)
    actor_email: str | None = Field(default=None, max_length=255)
    entity_type: str = Field(max_length=50)
    entity_id: str = Field(max_length=64)
    entity_name: str | None = Field(default=None, max_length=255)
    action: str = Field(max_length=50)
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=utc_timestamp_type(),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
