"""Pydantic models shared across API, services, and storage.

Terms used in this file:
- Record: a row read back from the store (ids and timestamps always present).
- Create model: request body for a new record; omitted fields take defaults.
- Patch model: every field independently optional. ``None`` means "leave the
  stored value unchanged", so a patch can set a field but never clear it.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# Fixed enumerations. The board page and API clients hardcode these values.
TaskStatus = Literal["backlog", "todo", "in-progress", "done", "parked"]
TaskPriority = Literal["urgent", "high", "medium", "low"]
AgentStatus = Literal["active", "inactive"]
ProjectStatus = Literal["active", "archived"]

DEFAULT_AGENT_EMOJI = "🤖"
DEFAULT_PROJECT_COLOR = "#6366f1"
TAG_SEPARATOR = ","


def join_tags(tags: list[str] | str | None) -> str | None:
    """Flatten a tag list into the stored comma-joined representation."""
    if tags is None:
        return None
    if isinstance(tags, str):
        return tags
    return TAG_SEPARATOR.join(tag.strip() for tag in tags if tag.strip())


def split_tags(raw: str | None) -> list[str]:
    """Split a stored tag string, trimming entries and dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(TAG_SEPARATOR) if tag.strip()]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Empty strings from HTML forms mean "unset".
OptionalRef = Annotated[str | None, BeforeValidator(_blank_to_none)]
OptionalDate = Annotated[date | None, BeforeValidator(_blank_to_none)]


class Patch(BaseModel):
    """Base for coalescing updates."""

    # Fields that map 1:1 onto columns of the patched table.
    patch_fields: ClassVar[tuple[str, ...]] = ()

    def assignments(self) -> dict[str, Any]:
        """Return ``{column: value}`` for every field present in this patch."""
        merged: dict[str, Any] = {}
        for name in self.patch_fields:
            value = getattr(self, name)
            if value is None:
                continue
            merged[name] = self._storage_value(name, value)
        return merged

    def _storage_value(self, name: str, value: Any) -> Any:
        return value


class Agent(BaseModel):
    id: str
    name: str
    emoji: str | None = DEFAULT_AGENT_EMOJI
    role: str | None = None
    status: str = "active"
    notify_telegram_id: str | None = None
    created_at: datetime | None = None


class AgentCreate(BaseModel):
    name: str = Field(min_length=1)
    emoji: str | None = None
    role: str | None = None
    notify_telegram_id: str | None = None


class AgentPatch(Patch):
    patch_fields: ClassVar[tuple[str, ...]] = (
        "name",
        "emoji",
        "role",
        "status",
        "notify_telegram_id",
    )

    name: str | None = None
    emoji: str | None = None
    role: str | None = None
    status: AgentStatus | None = None
    notify_telegram_id: str | None = None


class Project(BaseModel):
    id: str
    name: str
    client: str | None = None
    description: str | None = None
    color: str | None = DEFAULT_PROJECT_COLOR
    status: str = "active"
    created_at: datetime | None = None


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    client: str | None = None
    description: str | None = None
    color: str | None = None


class ProjectPatch(Patch):
    patch_fields: ClassVar[tuple[str, ...]] = (
        "name",
        "client",
        "description",
        "color",
        "status",
    )

    name: str | None = None
    client: str | None = None
    description: str | None = None
    color: str | None = None
    status: ProjectStatus | None = None


class Task(BaseModel):
    """Canonical task record shape returned by API/storage."""

    id: str
    title: str
    description: str | None = None
    # Plain strings: rows written before the fixed sets existed may hold other values.
    status: str = "backlog"
    priority: str = "medium"
    assignee_id: str | None = None
    project_id: str | None = None
    # Stored flat; see split_tags() for the logical set.
    tags: str | None = None
    due_date: date | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def tag_list(self) -> list[str]:
        return split_tags(self.tags)


class TaskView(Task):
    """Task joined with display fields of its project and assignee."""

    project_name: str | None = None
    project_color: str | None = None
    project_client: str | None = None
    assignee_name: str | None = None
    assignee_emoji: str | None = None


class Comment(BaseModel):
    id: str
    task_id: str
    author: str
    content: str
    created_at: datetime


class HistoryEntry(BaseModel):
    id: str
    task_id: str
    # created | updated | comment; rows patched in by the legacy migration carry "update".
    action: str
    field: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    actor: str | None = None
    created_at: datetime


class TaskDetail(TaskView):
    comments: list[Comment] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)


class TaskCreate(BaseModel):
    """Request body for POST /api/tasks."""

    # Checked by the service so missing and blank titles fail the same way.
    title: str | None = None
    description: str | None = None
    status: TaskStatus = "backlog"
    priority: TaskPriority = "medium"
    assignee_id: OptionalRef = None
    project_id: OptionalRef = None
    tags: list[str] | str | None = None
    due_date: OptionalDate = None

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, value: Any) -> Any:
        return "backlog" if _blank_to_none(value) is None else value

    @field_validator("priority", mode="before")
    @classmethod
    def _priority_default(cls, value: Any) -> Any:
        return "medium" if _blank_to_none(value) is None else value


class TaskPatch(Patch):
    """Partial task update. Absent or null fields keep their stored value."""

    patch_fields: ClassVar[tuple[str, ...]] = (
        "title",
        "description",
        "status",
        "priority",
        "assignee_id",
        "project_id",
        "tags",
        "due_date",
    )

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: OptionalRef = None
    project_id: OptionalRef = None
    tags: list[str] | str | None = None
    due_date: OptionalDate = None

    def _storage_value(self, name: str, value: Any) -> Any:
        if name == "title":
            return value.strip()
        if name == "tags":
            return join_tags(value)
        if name == "due_date":
            return value.isoformat()
        return value


class TaskUpdateRequest(TaskPatch):
    """Request body for PATCH /api/tasks/{id}; ``actor`` is recorded in history."""

    actor: str | None = None


class CommentCreate(BaseModel):
    author: str | None = None
    content: str = ""


class Notification(BaseModel):
    id: str
    agent_id: str | None = None
    task_id: str | None = None
    type: str
    message: str
    read: bool = False
    created_at: datetime
    # Null when the task has been deleted.
    task_title: str | None = None


class MarkAllReadRequest(BaseModel):
    agent_id: str | None = None


class AgentLoad(BaseModel):
    id: str
    name: str
    emoji: str | None = None
    count: int


class ProjectLoad(BaseModel):
    id: str
    name: str
    color: str | None = None
    client: str | None = None
    count: int


class BoardStats(BaseModel):
    # Wire names are camelCase; services build it with the field names.
    model_config = ConfigDict(populate_by_name=True)

    total: int
    by_status: dict[str, int] = Field(alias="byStatus")
    by_agent: list[AgentLoad] = Field(alias="byAgent")
    by_project: list[ProjectLoad] = Field(alias="byProject")


class SuccessResponse(BaseModel):
    success: bool = True
