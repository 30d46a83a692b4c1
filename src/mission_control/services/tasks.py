"""Task lifecycle: create, update, delete and comment on tasks.

Every accepted mutation also writes its derived records:
- ``task_history`` rows for creation, status changes, assignee changes and comments;
- an ``assigned`` notification whenever a task gains a (new) non-null assignee.

Each operation is a short sequence of independent statements. There is no
enclosing transaction, so a failure part-way leaves earlier writes in place.
"""

from __future__ import annotations

import logging

from mission_control.errors import NotFoundError, ValidationError
from mission_control.models import (
    Comment,
    HistoryEntry,
    Task,
    TaskCreate,
    TaskDetail,
    TaskPatch,
    join_tags,
)
from mission_control.services.common import TASK_VIEW_SQL, Clock, new_id, utc_now
from mission_control.services.notifications import NotificationStore
from mission_control.storage.base import Database

logger = logging.getLogger(__name__)

HISTORY_DISPLAY_LIMIT = 50
DEFAULT_ACTOR = "User"
ANONYMOUS_AUTHOR = "Anonymous"


def assignment_message(title: str) -> str:
    return f'You\'ve been assigned: "{title}"'


class TaskService:
    def __init__(
        self,
        database: Database,
        *,
        notifications: NotificationStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._db = database
        self._clock = clock
        self.notifications = notifications or NotificationStore(database, clock=clock)

    def create(self, payload: TaskCreate, *, actor: str = DEFAULT_ACTOR) -> Task:
        """Insert a task, its ``created`` history entry and, if assigned, a notification."""
        title = (payload.title or "").strip()
        if not title:
            raise ValidationError("title is required")

        task_id = new_id()
        now = self._clock()
        self._db.execute(
            """
            INSERT INTO tasks (
                id,
                title,
                description,
                status,
                priority,
                assignee_id,
                project_id,
                tags,
                due_date,
                created_at,
                updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task_id,
                title,
                payload.description,
                payload.status,
                payload.priority,
                payload.assignee_id,
                payload.project_id,
                join_tags(payload.tags) or None,
                payload.due_date.isoformat() if payload.due_date else None,
                now,
                now,
            ),
        )
        self._log_history(task_id, "created", actor=actor)
        if payload.assignee_id:
            self.notifications.create(
                agent_id=payload.assignee_id,
                task_id=task_id,
                kind="assigned",
                message=assignment_message(title),
            )
        logger.info(
            "task event=created task_id=%s status=%s priority=%s assignee_id=%s",
            task_id,
            payload.status,
            payload.priority,
            payload.assignee_id,
        )
        return self._require_task(task_id)

    def update(self, task_id: str, patch: TaskPatch, *, actor: str = DEFAULT_ACTOR) -> Task:
        """Apply the fields present in ``patch``; absent or null fields stay as stored.

        ``updated_at`` is refreshed on every call, even when no value differs.
        """
        if patch.title is not None and not patch.title.strip():
            raise ValidationError("title must not be blank")

        current = self._fetch_task(task_id)
        if current is None:
            raise NotFoundError(f"Task {task_id} not found")

        assignments = patch.assignments()
        columns = [f"{column} = ?" for column in assignments]
        columns.append("updated_at = ?")
        self._db.execute(
            f"UPDATE tasks SET {', '.join(columns)} WHERE id = ?",
            (*assignments.values(), self._clock(), task_id),
        )

        new_status = assignments.get("status")
        if new_status is not None and new_status != current.status:
            self._log_history(
                task_id,
                "updated",
                field="status",
                old_value=current.status,
                new_value=new_status,
                actor=actor,
            )

        new_assignee = assignments.get("assignee_id")
        if new_assignee and new_assignee != current.assignee_id:
            self._log_history(
                task_id,
                "updated",
                field="assignee_id",
                old_value=current.assignee_id,
                new_value=new_assignee,
                actor=actor,
            )
            self.notifications.create(
                agent_id=new_assignee,
                task_id=task_id,
                kind="assigned",
                message=assignment_message(current.title),
            )

        logger.info(
            "task event=updated task_id=%s fields=%s actor=%s",
            task_id,
            ",".join(assignments) or "-",
            actor,
        )
        return self._require_task(task_id)

    def delete(self, task_id: str) -> None:
        """Remove the task row only; comments, history and notifications stay behind."""
        result = self._db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        logger.info("task event=deleted task_id=%s rows=%s", task_id, result.rowcount)

    def get(self, task_id: str) -> TaskDetail:
        """Task with project/assignee display fields, newest history and all comments."""
        row = self._db.fetch_one(f"{TASK_VIEW_SQL} WHERE t.id = ?", (task_id,))
        if row is None:
            raise NotFoundError(f"Task {task_id} not found")
        return TaskDetail(
            **row,
            comments=self.list_comments(task_id),
            history=self.list_history(task_id),
        )

    def add_comment(self, task_id: str, content: str, *, author: str | None = None) -> Comment:
        """Attach a comment and log it in history.

        The task id is not checked: a comment on a missing task is stored as-is.
        """
        if not content or not content.strip():
            raise ValidationError("content is required")
        author_name = author.strip() if author and author.strip() else ANONYMOUS_AUTHOR

        comment_id = new_id()
        self._db.execute(
            "INSERT INTO comments (id, task_id, author, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (comment_id, task_id, author_name, content, self._clock()),
        )
        self._log_history(task_id, "comment", new_value=content, actor=author_name)
        logger.info("comment event=created comment_id=%s task_id=%s", comment_id, task_id)

        row = self._db.fetch_one("SELECT * FROM comments WHERE id = ?", (comment_id,))
        if row is None:
            raise RuntimeError("Failed to load created comment")
        return Comment.model_validate(row)

    def list_comments(self, task_id: str) -> list[Comment]:
        rows = self._db.fetch_all(
            "SELECT * FROM comments WHERE task_id = ? ORDER BY created_at DESC, id DESC",
            (task_id,),
        )
        return [Comment.model_validate(row) for row in rows]

    def delete_comment(self, comment_id: str) -> None:
        self._db.execute("DELETE FROM comments WHERE id = ?", (comment_id,))

    def list_history(self, task_id: str, *, limit: int = HISTORY_DISPLAY_LIMIT) -> list[HistoryEntry]:
        rows = self._db.fetch_all(
            """
            SELECT *
            FROM task_history
            WHERE task_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (task_id, int(limit)),
        )
        return [HistoryEntry.model_validate(row) for row in rows]

    def _fetch_task(self, task_id: str) -> Task | None:
        row = self._db.fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        if row is None:
            return None
        return Task.model_validate(row)

    def _require_task(self, task_id: str) -> Task:
        task = self._fetch_task(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def _log_history(
        self,
        task_id: str,
        action: str,
        *,
        field: str | None = None,
        old_value: str | None = None,
        new_value: str | None = None,
        actor: str = "System",
    ) -> None:
        self._db.execute(
            """
            INSERT INTO task_history (
                id,
                task_id,
                action,
                field,
                old_value,
                new_value,
                actor,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (new_id(), task_id, action, field, old_value, new_value, actor, self._clock()),
        )
