from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from mission_control.storage import PostgresDatabase, initialize_schema


@pytest.fixture
def postgres_database() -> Iterator[PostgresDatabase]:
    if os.getenv("RUN_POSTGRES_INTEGRATION_TESTS") != "1":
        pytest.skip(
            "Set RUN_POSTGRES_INTEGRATION_TESTS=1 and MISSION_CONTROL_DATABASE_URL "
            "to run integration tests against PostgreSQL."
        )
    database_url = os.getenv("MISSION_CONTROL_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("MISSION_CONTROL_DATABASE_URL is required for integration tests.")

    database = PostgresDatabase(database_url)
    initialize_schema(database)
    try:
        yield database
    finally:
        database.close()
