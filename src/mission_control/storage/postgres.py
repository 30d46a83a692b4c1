"""PostgreSQL backend used when a database URL is configured."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

from mission_control.storage.base import POSTGRES_DIALECT, QueryResult, translate_placeholders

logger = logging.getLogger(__name__)


class PostgresDatabase:
    """Managed network store.

    Statements run through psycopg's raw cursor so the server sees native
    ``$n`` placeholders. Every call opens its own autocommit connection; the
    server provides all concurrency control.
    """

    dialect = POSTGRES_DIALECT

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("database_url is required")
        self.database_url = database_url
        # Lazy import helper keeps error message clear if psycopg is missing.
        self._psycopg, self._dict_row, self._raw_cursor = self._load_psycopg()
        self.errors = self.driver_errors()
        logger.info("store event=open backend=postgres host=%s", self.safe_target)

    @classmethod
    def driver_errors(cls) -> tuple[type[Exception], ...]:
        psycopg, _, _ = cls._load_psycopg()
        return (psycopg.Error,)

    @property
    def safe_target(self) -> str:
        """Host and database name without credentials, for logs and health output."""
        parts = urlsplit(self.database_url)
        return f"{parts.hostname or 'localhost'}{parts.path or ''}"

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        statement = translate_placeholders(sql, params, self.dialect.placeholder_style)
        with self._connect() as conn:
            cursor = conn.execute(statement, tuple(params))
            # Statements without a result description still report a row set.
            if cursor.description is None:
                return QueryResult(rows=[], rowcount=cursor.rowcount)
            rows = [self._normalize_row(row) for row in cursor.fetchall()]
            return QueryResult(rows=rows, rowcount=cursor.rowcount)

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        rows = self.execute(sql, params).rows
        return rows[0] if rows else None

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return self.execute(sql, params).rows

    def close(self) -> None:
        # Connections are per call; nothing is held between statements.
        logger.info("store event=close backend=postgres host=%s", self.safe_target)

    def _connect(self) -> Any:
        """Open an autocommit psycopg connection that yields dict rows."""
        return self._psycopg.connect(
            self.database_url,
            autocommit=True,
            row_factory=self._dict_row,
            cursor_factory=self._raw_cursor,
        )

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        """Import psycopg and helpers with a friendly install hint on failure."""
        try:
            import psycopg
            from psycopg.rows import dict_row
        except ImportError as exc:  # pragma: no cover - exercised only without dependency
            raise RuntimeError(
                "PostgreSQL backend requires psycopg. Install with: "
                'python -m pip install "psycopg[binary]>=3.2,<4.0"'
            ) from exc
        return psycopg, dict_row, psycopg.RawCursor

    @staticmethod
    def _normalize_row(row: dict[str, Any]) -> dict[str, Any]:
        normalized = dict(row)
        for key, value in normalized.items():
            if isinstance(value, datetime) and value.tzinfo is not None:
                normalized[key] = value.astimezone(UTC)
        return normalized
