"""SQLite backend used when no database URL is configured."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Sequence
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from mission_control.storage.base import (
    SQLITE_DIALECT,
    QueryResult,
    returns_rows,
    translate_placeholders,
)

logger = logging.getLogger(__name__)

# Columns stored as 0/1 integers that callers expect back as bool.
BOOLEAN_COLUMNS = frozenset({"read"})


class SQLiteDatabase:
    """Single-file store shared across request threads.

    One connection is opened per store and guarded by a lock; WAL mode lets
    readers in other processes proceed while a write is in flight. Every
    statement commits on its own, there are no multi-statement transactions.
    """

    dialect = SQLITE_DIALECT
    errors: tuple[type[Exception], ...] = (sqlite3.Error,)

    @classmethod
    def driver_errors(cls) -> tuple[type[Exception], ...]:
        return cls.errors

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(self.path),
            timeout=30.0,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        logger.info("store event=open backend=sqlite path=%s", self.path)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        statement = translate_placeholders(sql, params, self.dialect.placeholder_style)
        bound = tuple(self._bind(value) for value in params)
        with self._lock:
            cursor = self._conn.execute(statement, bound)
            try:
                if returns_rows(statement):
                    rows = [self._normalize_row(row) for row in cursor.fetchall()]
                    return QueryResult(rows=rows, rowcount=len(rows))
                return QueryResult(rows=[], rowcount=cursor.rowcount)
            finally:
                cursor.close()

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        rows = self.execute(sql, params).rows
        return rows[0] if rows else None

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return self.execute(sql, params).rows

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        logger.info("store event=close backend=sqlite path=%s", self.path)

    @staticmethod
    def _bind(value: Any) -> Any:
        """Convert Python values to the text/integer forms kept in SQLite."""
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(UTC).replace(tzinfo=None)
            return value.isoformat(sep=" ", timespec="microseconds")
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _normalize_row(row: sqlite3.Row) -> dict[str, Any]:
        normalized: dict[str, Any] = {}
        for key in row.keys():
            value = row[key]
            if key in BOOLEAN_COLUMNS and value is not None:
                value = bool(value)
            elif key.endswith("_at") and isinstance(value, str):
                value = _parse_timestamp(value)
            normalized[key] = value
        return normalized


def _parse_timestamp(raw: str) -> datetime:
    """Parse stored UTC text (``YYYY-MM-DD HH:MM:SS[.fff]``) into an aware datetime."""
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
