"""Read-side queries for the board: filtered listings, counts and tags."""

from __future__ import annotations

from mission_control.models import AgentLoad, BoardStats, ProjectLoad, TaskView, split_tags
from mission_control.services.common import TASK_VIEW_SQL
from mission_control.storage.base import Database

# Urgent first, then high, then medium; everything else shares the last rank.
PRIORITY_ORDER_SQL = (
    "CASE t.priority WHEN 'urgent' THEN 1 WHEN 'high' THEN 2 WHEN 'medium' THEN 3 ELSE 4 END"
)


class BoardQueries:
    def __init__(self, database: Database) -> None:
        self._db = database

    def list_tasks(
        self,
        *,
        status: str | None = None,
        assignee: str | None = None,
        project: str | None = None,
    ) -> list[TaskView]:
        """Tasks matching every given filter, by priority rank then newest first."""
        conditions: list[str] = []
        params: list[str] = []
        if status:
            conditions.append("t.status = ?")
            params.append(status)
        if assignee:
            conditions.append("t.assignee_id = ?")
            params.append(assignee)
        if project:
            conditions.append("t.project_id = ?")
            params.append(project)

        sql = TASK_VIEW_SQL
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += f" ORDER BY {PRIORITY_ORDER_SQL}, t.created_at DESC, t.id DESC"
        return [TaskView.model_validate(row) for row in self._db.fetch_all(sql, params)]

    def stats(self) -> BoardStats:
        """Board totals; per-agent and per-project counts cover open (non-done) tasks."""
        total = self._db.fetch_one("SELECT COUNT(*) AS count FROM tasks")
        status_rows = self._db.fetch_all(
            "SELECT status, COUNT(*) AS count FROM tasks GROUP BY status ORDER BY status"
        )
        agent_rows = self._db.fetch_all(
            """
            SELECT a.id, a.name, a.emoji, COUNT(t.id) AS count
            FROM agents a
            LEFT JOIN tasks t ON a.id = t.assignee_id AND t.status != ?
            GROUP BY a.id, a.name, a.emoji, a.created_at
            ORDER BY a.created_at, a.id
            """,
            ("done",),
        )
        project_rows = self._db.fetch_all(
            """
            SELECT p.id, p.name, p.color, p.client, COUNT(t.id) AS count
            FROM projects p
            LEFT JOIN tasks t ON p.id = t.project_id AND t.status != ?
            WHERE p.status = ?
            GROUP BY p.id, p.name, p.color, p.client
            ORDER BY p.name, p.id
            """,
            ("done", "active"),
        )
        return BoardStats(
            total=int(total["count"]) if total else 0,
            by_status={row["status"]: int(row["count"]) for row in status_rows},
            by_agent=[AgentLoad.model_validate(row) for row in agent_rows],
            by_project=[ProjectLoad.model_validate(row) for row in project_rows],
        )

    def distinct_tags(self) -> list[str]:
        rows = self._db.fetch_all(
            "SELECT tags FROM tasks WHERE tags IS NOT NULL AND tags != ?",
            ("",),
        )
        tags: set[str] = set()
        for row in rows:
            tags.update(split_tags(row["tags"]))
        return sorted(tags)
