from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from mission_control.api.main import create_app
from mission_control.config.settings import Settings
from mission_control.models import Agent
from mission_control.services import BoardQueries, DirectoryService, NotificationStore, TaskService
from mission_control.storage import SQLiteDatabase, initialize_schema


class FakeClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def database(tmp_path) -> Iterator[SQLiteDatabase]:
    db = SQLiteDatabase(tmp_path / "board.db")
    initialize_schema(db)
    yield db
    db.close()


@pytest.fixture
def notifications(database: SQLiteDatabase, clock: FakeClock) -> NotificationStore:
    return NotificationStore(database, clock=clock)


@pytest.fixture
def tasks(
    database: SQLiteDatabase,
    notifications: NotificationStore,
    clock: FakeClock,
) -> TaskService:
    return TaskService(database, notifications=notifications, clock=clock)


@pytest.fixture
def queries(database: SQLiteDatabase) -> BoardQueries:
    return BoardQueries(database)


@pytest.fixture
def directory(database: SQLiteDatabase, clock: FakeClock) -> DirectoryService:
    return DirectoryService(database, clock=clock)


@pytest.fixture
def agents(directory: DirectoryService) -> list[Agent]:
    """The four seeded agents, in seed order."""
    return directory.list_agents()


@pytest.fixture
def client(database: SQLiteDatabase, clock: FakeClock) -> Iterator[TestClient]:
    app = create_app(
        database=database,
        settings_override=Settings(app_name="mission-control-test"),
        clock=clock,
    )
    with TestClient(app) as test_client:
        yield test_client
