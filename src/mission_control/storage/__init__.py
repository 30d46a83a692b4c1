"""Storage backends and schema setup."""

from mission_control.storage.base import Database, Dialect, QueryResult, translate_placeholders
from mission_control.storage.factory import backend_class, create_database, open_database
from mission_control.storage.postgres import PostgresDatabase
from mission_control.storage.schema import initialize_schema
from mission_control.storage.sqlite import SQLiteDatabase

__all__ = [
    "Database",
    "Dialect",
    "PostgresDatabase",
    "QueryResult",
    "SQLiteDatabase",
    "backend_class",
    "create_database",
    "initialize_schema",
    "open_database",
    "translate_placeholders",
]
