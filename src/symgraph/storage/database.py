"""SQLite helpers for symgraph's snapshot store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from ..config import DEFAULT_CONFIG, GraphConfig


def _configure_connection(connection: sqlite3.Connection) -> None:
    """Apply pragmas that improve local developer experience.

    WAL mode keeps readers such as the MCP server responsive while a build
    rewrites a snapshot. ``foreign_keys`` makes snapshot replacement cascade
    to symbol and resolution rows.
    """

    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute("PRAGMA foreign_keys=ON;")


def get_connection(config: GraphConfig | None = None) -> sqlite3.Connection:
    """Create a SQLite connection scoped to the configured database path."""

    active_config = config or DEFAULT_CONFIG
    db_path = active_config.resolved_database_path()
    connection = sqlite3.connect(db_path)
    _configure_connection(connection)
    return connection


@contextmanager
def temp_connection(schema_sql: str) -> Iterator[sqlite3.Connection]:
    """Yield an in-memory SQLite connection loaded with ``schema_sql``.

    Tests use this helper to exercise snapshots without touching files on disk.
    """

    connection = sqlite3.connect(":memory:")
    try:
        _configure_connection(connection)
        connection.executescript(schema_sql)
        yield connection
    finally:
        connection.close()
