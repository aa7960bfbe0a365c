from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _uuid_factory() -> uuid.UUID:
    return uuid.uuid4()


def now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def utc_timestamp_type() -> sa.DateTime:
    """Column type shared by every timestamp in the engine's tables."""
    return sa.DateTime(timezone=True)


class UUIDBase(SQLModel):
    """Base model with UUID primary key."""

    id: uuid.UUID = Field(
        default_factory=_uuid_factory,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = Field(
        default_factory=now_utc,
        sa_type=utc_timestamp_type(),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class UpdatedAtMixin(SQLModel):
    """Mixin that tracks the last write to a mutable row."""

    updated_at: datetime | None = Field(
        default=None,
        sa_type=utc_timestamp_type(),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"onupdate": now_utc},
    )
