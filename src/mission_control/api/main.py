"""FastAPI app entrypoint for mission-control.

Terms used in this file:
- Lifespan: startup/shutdown hook; opens the store and runs schema setup
  before the first request is accepted.
- app.state: holds the store and the services route handlers share.
- Exception handlers: map service errors to HTTP status codes in one place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from mission_control.api.ui import render_homepage
from mission_control.config.settings import Settings, get_settings
from mission_control.errors import NotFoundError, ValidationError
from mission_control.models import (
    Agent,
    AgentCreate,
    AgentPatch,
    BoardStats,
    Comment,
    CommentCreate,
    MarkAllReadRequest,
    Notification,
    Project,
    ProjectCreate,
    ProjectPatch,
    SuccessResponse,
    Task,
    TaskCreate,
    TaskDetail,
    TaskUpdateRequest,
    TaskView,
)
from mission_control.services import BoardQueries, DirectoryService, NotificationStore, TaskService
from mission_control.services.common import Clock, utc_now
from mission_control.storage import Database, backend_class, initialize_schema, open_database

logger = logging.getLogger(__name__)


def _attach_services(app: FastAPI, database: Database, clock: Clock) -> None:
    notifications = NotificationStore(database, clock=clock)
    app.state.database = database
    app.state.notifications = notifications
    app.state.tasks = TaskService(database, notifications=notifications, clock=clock)
    app.state.queries = BoardQueries(database)
    app.state.directory = DirectoryService(database, clock=clock)


@contextmanager
def _runtime_store(settings: Settings) -> Iterator[Database]:
    """Open the configured store and initialize it; failure aborts startup."""
    with open_database(settings) as database:
        initialize_schema(database)
        yield database


def create_app(
    *,
    database: Database | None = None,
    settings_override: Settings | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Application factory.

    With ``database`` given (tests), the store is initialized right away and
    left open for the caller to close. Otherwise the lifespan opens the
    configured backend and closes it at shutdown.
    """
    settings = settings_override or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with _runtime_store(settings) as runtime_database:
            _attach_services(app, runtime_database, clock)
            yield

    app = FastAPI(title=settings.app_name, lifespan=lifespan if database is None else None)

    # Keep test paths reliable when lifespan is not executed by the client.
    if database is not None:
        initialize_schema(database)
        _attach_services(app, database, clock)
        storage_errors = database.errors
    else:
        storage_errors = backend_class(settings).driver_errors()

    _register_error_handlers(app, storage_errors)

    @app.get("/", response_class=HTMLResponse)
    def home() -> str:
        return render_homepage(app_name=settings.app_name)

    @app.get("/api/health")
    def health(request: Request) -> JSONResponse:
        db: Database = request.app.state.database
        try:
            row = db.fetch_one("SELECT COUNT(*) AS count FROM tasks")
        except db.errors as exc:
            return JSONResponse(
                status_code=500,
                content={"status": "error", "error": str(exc), "db": db.dialect.name},
            )
        return JSONResponse(
            content={"status": "ok", "db": db.dialect.name, "tasks": int(row["count"]) if row else 0}
        )

    # -- Agents --

    @app.get("/api/agents", response_model=list[Agent])
    def list_agents(request: Request) -> list[Agent]:
        return _directory(request).list_agents()

    @app.post("/api/agents", response_model=Agent)
    def create_agent(payload: AgentCreate, request: Request) -> Agent:
        return _directory(request).create_agent(payload)

    @app.patch("/api/agents/{agent_id}", response_model=Agent)
    def update_agent(agent_id: str, payload: AgentPatch, request: Request) -> Agent:
        return _directory(request).update_agent(agent_id, payload)

    @app.delete("/api/agents/{agent_id}", response_model=SuccessResponse)
    def delete_agent(agent_id: str, request: Request) -> SuccessResponse:
        _directory(request).delete_agent(agent_id)
        return SuccessResponse()

    # -- Projects --

    @app.get("/api/projects", response_model=list[Project])
    def list_projects(request: Request) -> list[Project]:
        return _directory(request).list_projects()

    @app.post("/api/projects", response_model=Project)
    def create_project(payload: ProjectCreate, request: Request) -> Project:
        return _directory(request).create_project(payload)

    @app.patch("/api/projects/{project_id}", response_model=Project)
    def update_project(project_id: str, payload: ProjectPatch, request: Request) -> Project:
        return _directory(request).update_project(project_id, payload)

    @app.delete("/api/projects/{project_id}", response_model=SuccessResponse)
    def delete_project(project_id: str, request: Request) -> SuccessResponse:
        _directory(request).delete_project(project_id)
        return SuccessResponse()

    # -- Tasks --

    @app.get("/api/tasks", response_model=list[TaskView])
    def list_tasks(
        request: Request,
        status: str | None = None,
        assignee: str | None = None,
        project: str | None = None,
    ) -> list[TaskView]:
        return _queries(request).list_tasks(status=status, assignee=assignee, project=project)

    @app.get("/api/tasks/{task_id}", response_model=TaskDetail)
    def get_task(task_id: str, request: Request) -> TaskDetail:
        return _tasks(request).get(task_id)

    @app.post("/api/tasks", response_model=Task)
    def create_task(payload: TaskCreate, request: Request) -> Task:
        return _tasks(request).create(payload)

    @app.patch("/api/tasks/{task_id}", response_model=Task)
    def update_task(task_id: str, payload: TaskUpdateRequest, request: Request) -> Task:
        return _tasks(request).update(task_id, payload, actor=payload.actor or "User")

    @app.delete("/api/tasks/{task_id}", response_model=SuccessResponse)
    def delete_task(task_id: str, request: Request) -> SuccessResponse:
        _tasks(request).delete(task_id)
        return SuccessResponse()

    # -- Comments --

    @app.get("/api/tasks/{task_id}/comments", response_model=list[Comment])
    def list_comments(task_id: str, request: Request) -> list[Comment]:
        return _tasks(request).list_comments(task_id)

    @app.post("/api/tasks/{task_id}/comments", response_model=Comment)
    def add_comment(task_id: str, payload: CommentCreate, request: Request) -> Comment:
        return _tasks(request).add_comment(task_id, payload.content, author=payload.author)

    @app.delete("/api/comments/{comment_id}", response_model=SuccessResponse)
    def delete_comment(comment_id: str, request: Request) -> SuccessResponse:
        _tasks(request).delete_comment(comment_id)
        return SuccessResponse()

    # -- Notifications --

    @app.get("/api/notifications", response_model=list[Notification])
    def list_notifications(
        request: Request,
        agent_id: str | None = None,
        unread: bool = False,
    ) -> list[Notification]:
        return _notifications(request).list_notifications(agent_id=agent_id, unread_only=unread)

    @app.patch("/api/notifications/{notification_id}/read", response_model=SuccessResponse)
    def mark_notification_read(notification_id: str, request: Request) -> SuccessResponse:
        _notifications(request).mark_read(notification_id)
        return SuccessResponse()

    @app.post("/api/notifications/mark-all-read", response_model=SuccessResponse)
    def mark_all_notifications_read(
        request: Request,
        payload: MarkAllReadRequest | None = None,
    ) -> SuccessResponse:
        _notifications(request).mark_all_read(payload.agent_id if payload else None)
        return SuccessResponse()

    # -- Board --

    @app.get("/api/stats", response_model=BoardStats)
    def stats(request: Request) -> BoardStats:
        return _queries(request).stats()

    @app.get("/api/tags", response_model=list[str])
    def tags(request: Request) -> list[str]:
        return _queries(request).distinct_tags()

    return app


def _register_error_handlers(app: FastAPI, storage_errors: tuple[type[Exception], ...]) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    async def storage_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "request event=storage_error method=%s path=%s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": str(exc)})

    for error_class in storage_errors:
        app.add_exception_handler(error_class, storage_error)


def _tasks(request: Request) -> TaskService:
    return request.app.state.tasks


def _queries(request: Request) -> BoardQueries:
    return request.app.state.queries


def _directory(request: Request) -> DirectoryService:
    return request.app.state.directory


def _notifications(request: Request) -> NotificationStore:
    return request.app.state.notifications


# Module-level app for `uvicorn mission_control.api.main:app`.
app = create_app()
