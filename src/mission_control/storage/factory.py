"""Backend selection and scoped store lifecycle."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from mission_control.config.settings import Settings
from mission_control.storage.base import Database
from mission_control.storage.postgres import PostgresDatabase
from mission_control.storage.sqlite import SQLiteDatabase


def backend_class(settings: Settings) -> type[PostgresDatabase] | type[SQLiteDatabase]:
    """PostgreSQL when a database URL is set, else the SQLite file."""
    if settings.resolved_database_url():
        return PostgresDatabase
    return SQLiteDatabase


def create_database(settings: Settings) -> Database:
    if backend_class(settings) is PostgresDatabase:
        return PostgresDatabase(settings.resolved_database_url())
    return SQLiteDatabase(settings.sqlite_path)


@contextmanager
def open_database(settings: Settings) -> Iterator[Database]:
    """Open the configured store for the duration of the block."""
    database = create_database(settings)
    try:
        yield database
    finally:
        database.close()
