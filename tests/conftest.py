"""
Shared pytest fixtures for chronicle tests.

This module provides:
- An in-memory SQLite connection with the full schema
- Fixed clocks so windows and calendar dates are deterministic
- Settings isolated from the developer's environment and .env file
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from chronicle.core.schema import create_tables
from chronicle.core.settings import ChronicleSettings, clear_settings_cache
from chronicle.core.sqlite_conn import SqliteConnection

# 2026-03-10 18:00 UTC = 11:00 in Los Angeles (PDT)
FIXED_NOW = datetime(2026, 3, 10, 18, 0, 0, tzinfo=UTC)


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def conn() -> Generator[SqliteConnection, None, None]:
    """In-memory database with every chronicle table."""
    connection = SqliteConnection(":memory:")
    create_tables(connection)
    yield connection
    connection.close()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def zone() -> ZoneInfo:
    return ZoneInfo("America/Los_Angeles")


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep CHRONICLE_* variables from the outer environment out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("CHRONICLE_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> ChronicleSettings:
    return ChronicleSettings(_env_file=None, database_url="sqlite://", timezone="America/Los_Angeles")
