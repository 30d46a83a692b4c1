from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import Any

import pytest

from mission_control.errors import InitializationError
from mission_control.storage import SQLiteDatabase, initialize_schema
from mission_control.storage.base import QueryResult
from mission_control.storage.schema import DEFAULT_AGENTS, table_statements

EXPECTED_TABLES = {"agents", "projects", "tasks", "comments", "task_history", "notifications"}


def _tables(database: SQLiteDatabase) -> set[str]:
    rows = database.fetch_all("SELECT name FROM sqlite_master WHERE type = ?", ("table",))
    return {row["name"] for row in rows}


def test_initialize_creates_tables_and_seeds_agents(database: SQLiteDatabase) -> None:
    assert EXPECTED_TABLES <= _tables(database)
    agents = database.fetch_all("SELECT name, emoji, role FROM agents ORDER BY created_at")
    assert [(a["name"], a["emoji"], a["role"]) for a in agents] == list(DEFAULT_AGENTS)


def test_initialize_is_idempotent(database: SQLiteDatabase) -> None:
    database.execute(
        "INSERT INTO tasks (id, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
        ("t1", "Keep me", "2026-01-01 00:00:00.000000", "2026-01-01 00:00:00.000000"),
    )

    initialize_schema(database)
    initialize_schema(database)

    count = database.fetch_one("SELECT COUNT(*) AS count FROM agents")
    assert count == {"count": len(DEFAULT_AGENTS)}
    assert database.fetch_one("SELECT title FROM tasks WHERE id = ?", ("t1",)) == {"title": "Keep me"}


def test_no_seeding_when_an_agent_already_exists(tmp_path) -> None:
    db = SQLiteDatabase(tmp_path / "custom.db")
    try:
        for statement in table_statements(db.dialect):
            db.execute(statement)
        db.execute("INSERT INTO agents (id, name) VALUES (?, ?)", ("me", "Solo"))

        initialize_schema(db)

        rows = db.fetch_all("SELECT id, name FROM agents")
        assert rows == [{"id": "me", "name": "Solo"}]
    finally:
        db.close()


def test_column_defaults(database: SQLiteDatabase) -> None:
    database.execute("INSERT INTO tasks (id, title) VALUES (?, ?)", ("t1", "Defaults"))
    database.execute(
        "INSERT INTO notifications (id, type, message) VALUES (?, ?, ?)",
        ("n1", "assigned", "hello"),
    )

    task = database.fetch_one("SELECT status, priority, created_at FROM tasks")
    assert task is not None
    assert task["status"] == "backlog"
    assert task["priority"] == "medium"
    assert task["created_at"].tzinfo is not None

    notification = database.fetch_one("SELECT read FROM notifications")
    assert notification == {"read": False}


def test_legacy_history_table_gains_action_column(tmp_path) -> None:
    path = tmp_path / "legacy.db"
    legacy = sqlite3.connect(path)
    legacy.execute(
        """
        CREATE TABLE task_history (
            id TEXT PRIMARY KEY,
            task_id TEXT NOT NULL,
            field TEXT,
            old_value TEXT,
            new_value TEXT,
            actor TEXT,
            created_at TEXT
        )
        """
    )
    legacy.execute(
        "INSERT INTO task_history (id, task_id, field, created_at) VALUES ('h1', 't1', 'status', '2025-01-01 00:00:00')"
    )
    legacy.commit()
    legacy.close()

    db = SQLiteDatabase(path)
    try:
        initialize_schema(db)
        initialize_schema(db)
        columns = [row["name"] for row in db.fetch_all("PRAGMA table_info(task_history)")]
        assert columns.count("action") == 1
        assert db.fetch_one("SELECT action FROM task_history WHERE id = ?", ("h1",)) == {
            "action": "update"
        }
    finally:
        db.close()


class FailingDatabase(SQLiteDatabase):
    """SQLite store whose index creation fails."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        if "CREATE INDEX" in sql:
            raise sqlite3.OperationalError("disk I/O error")
        return super().execute(sql, params)


def test_engine_failure_becomes_initialization_error(tmp_path) -> None:
    db = FailingDatabase(tmp_path / "broken.db")
    try:
        with pytest.raises(InitializationError, match="disk I/O error") as exc_info:
            initialize_schema(db)
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
    finally:
        db.close()
