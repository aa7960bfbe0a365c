from __future__ import annotations

import pytest

from leave_approval.config import Settings
from leave_approval.db import engine_options


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)  # type: ignore[call-arg]
    assert settings.environment == "development"
    assert settings.rejection_comment_min_length == 10
    assert settings.acting_officer_units == ["Internal Audit Unit", "Legal Unit"]
    assert settings.escalation_working_days == 10


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REJECTION_COMMENT_MIN_LENGTH", "25")
    monkeypatch.setenv("ACTING_OFFICER_UNITS", '["Legal Unit"]')
    settings = Settings(_env_file=None)  # type: ignore[call-arg]
    assert settings.rejection_comment_min_length == 25
    assert settings.acting_officer_units == ["Legal Unit"]


def test_engine_options_for_postgres() -> None:
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None, database_url="postgresql+asyncpg://u:p@db/leave", db_pool_size=3
    )
    options = engine_options(settings)
    assert options["pool_pre_ping"] is True
    assert options["pool_size"] == 3
    assert "connect_args" not in options


def test_engine_options_for_sqlite() -> None:
    settings = Settings(_env_file=None, database_url="sqlite+aiosqlite:///leave.db")  # type: ignore[call-arg]
    options = engine_options(settings)
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options
