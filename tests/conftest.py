"""Pytest configuration and shared database fixtures.

Database tests run against an in-memory SQLite database shared through a
``StaticPool``, so every connection sees the same ``Users`` table.
"""

from __future__ import annotations

from typing import Callable, Generator

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from db_toolkit.config import get_settings
from db_toolkit.config.data_access import DataAccessConfig, IsolationLevel

USERS_DDL = """
CREATE TABLE Users (
    Id INTEGER PRIMARY KEY AUTOINCREMENT,
    Name TEXT NOT NULL,
    Email TEXT,
    Age INTEGER
)
"""

SEEDED_USERS = 25


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the caller's environment and the settings cache."""
    for name in ("DB_ENCRYPTION_KEY", "DBTK_ENCRYPTION_KEY"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with an empty Users table."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as conn:
        conn.execute(text(USERS_DDL))
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_engine(engine: Engine) -> Engine:
    """Engine whose Users table holds Ids 1..25."""
    with engine.begin() as conn:
        conn.execute(
            text("INSERT INTO Users (Id, Name, Email, Age) VALUES (:Id, :Name, :Email, :Age)"),
            [
                {
                    "Id": i,
                    "Name": f"User {i:02d}",
                    "Email": f"user{i:02d}@example.com",
                    "Age": 20 + i,
                }
                for i in range(1, SEEDED_USERS + 1)
            ],
        )
    return engine


@pytest.fixture
def config() -> DataAccessConfig:
    """Defaults usable on SQLite (SERIALIZABLE instead of READ COMMITTED)."""
    return DataAccessConfig(isolation_level=IsolationLevel.SERIALIZABLE)


@pytest.fixture
def count_users(engine: Engine) -> Callable[[], int]:
    """Return a callable counting committed Users rows."""

    def _count() -> int:
        with engine.connect() as conn:
            return conn.execute(text("SELECT COUNT(*) FROM Users")).scalar_one()

    return _count
