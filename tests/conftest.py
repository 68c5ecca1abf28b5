"""Shared fixtures: a file-backed SQLite database driven through SQLEngine."""

from unittest.mock import Mock

import pytest

from sqlgate.compute.engine import SQLEngine
from sqlgate.settings.database import DatabaseConfig


@pytest.fixture
def sqlite_config(tmp_path):
    """Config pointing the engine at a fresh SQLite file."""
    return DatabaseConfig(
        drivername="sqlite",
        database=str(tmp_path / "sqlgate_test.db"),
        connection_limit=5,
        max_retries=3,
        retry_delay=0.5,
    )


@pytest.fixture
def sqlite_engine(sqlite_config):
    """SQLEngine over SQLite with a ``users`` table holding one row (id=5)."""
    engine = SQLEngine(sqlite_config, sleep=Mock())
    with engine.engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE users ("
            "id INTEGER PRIMARY KEY, "
            "name VARCHAR(50) NOT NULL, "
            "email VARCHAR(100) UNIQUE, "
            "age INTEGER)"
        )
        conn.exec_driver_sql(
            "INSERT INTO users (id, name, email, age) VALUES (5, 'Eve', 'eve@example.com', 31)"
        )
    yield engine
    engine.dispose()


@pytest.fixture
def mysql_config():
    """Config for mock-driven engine tests; no server is contacted."""
    return DatabaseConfig(
        host="db.internal",
        port=3307,
        user="app",
        password="s3cret",
        database="app",
        max_retries=3,
        retry_delay=0.5,
    )
