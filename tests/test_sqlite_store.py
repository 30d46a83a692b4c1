from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta, timezone

import pytest

from mission_control.storage import SQLiteDatabase


@pytest.fixture
def store(tmp_path):
    db = SQLiteDatabase(tmp_path / "nested" / "store.db")
    db.execute("CREATE TABLE items (id TEXT PRIMARY KEY, read INTEGER, created_at TEXT, note TEXT)")
    yield db
    db.close()


def test_creates_parent_directory_and_enables_wal(tmp_path) -> None:
    db = SQLiteDatabase(tmp_path / "a" / "b" / "board.db")
    try:
        assert (tmp_path / "a" / "b").is_dir()
        mode = db.fetch_one("PRAGMA journal_mode")
        assert mode is not None
        assert mode["journal_mode"].lower() == "wal"
    finally:
        db.close()


def test_writes_report_rowcount_and_reads_return_rows(store: SQLiteDatabase) -> None:
    inserted = store.execute(
        "INSERT INTO items (id, read, note) VALUES (?, ?, ?)",
        ("a", False, "first"),
    )
    assert inserted.rows == []
    assert inserted.rowcount == 1

    store.execute("INSERT INTO items (id, read, note) VALUES (?, ?, ?)", ("b", True, "second"))
    updated = store.execute("UPDATE items SET note = ?", ("same",))
    assert updated.rowcount == 2

    rows = store.fetch_all("SELECT id, read, note FROM items ORDER BY id")
    assert rows == [
        {"id": "a", "read": False, "note": "same"},
        {"id": "b", "read": True, "note": "same"},
    ]


def test_fetch_one_returns_none_when_empty(store: SQLiteDatabase) -> None:
    assert store.fetch_one("SELECT * FROM items WHERE id = ?", ("missing",)) is None


def test_timestamps_round_trip_as_aware_utc(store: SQLiteDatabase) -> None:
    local = datetime(2026, 3, 1, 12, 30, 15, 250000, tzinfo=timezone(timedelta(hours=2)))
    store.execute("INSERT INTO items (id, created_at) VALUES (?, ?)", ("a", local))

    raw = store.fetch_one("SELECT created_at AS stamp FROM items")
    assert raw == {"stamp": "2026-03-01 10:30:15.250000"}

    row = store.fetch_one("SELECT created_at FROM items")
    assert row is not None
    assert row["created_at"] == datetime(2026, 3, 1, 10, 30, 15, 250000, tzinfo=UTC)
    assert row["created_at"].tzinfo is not None


def test_column_default_timestamp_is_parsed(tmp_path) -> None:
    db = SQLiteDatabase(tmp_path / "defaults.db")
    try:
        db.execute(
            "CREATE TABLE t (id TEXT, created_at TEXT DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')))"
        )
        db.execute("INSERT INTO t (id) VALUES (?)", ("x",))
        row = db.fetch_one("SELECT * FROM t")
        assert row is not None
        assert isinstance(row["created_at"], datetime)
        assert row["created_at"].tzinfo == UTC
    finally:
        db.close()


def test_engine_errors_propagate_unwrapped(store: SQLiteDatabase) -> None:
    with pytest.raises(sqlite3.OperationalError, match="no such table"):
        store.fetch_all("SELECT * FROM nope")
    assert issubclass(sqlite3.OperationalError, store.errors)


def test_placeholder_mismatch_is_rejected_before_execution(store: SQLiteDatabase) -> None:
    with pytest.raises(ValueError):
        store.execute("INSERT INTO items (id) VALUES (?)", ())
    assert store.fetch_all("SELECT * FROM items") == []
