"""Append-only notification feed."""

from __future__ import annotations

import logging

from mission_control.models import Notification
from mission_control.services.common import Clock, new_id, utc_now
from mission_control.storage.base import Database

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


class NotificationStore:
    """Notifications are written once; only the ``read`` flag changes afterwards."""

    def __init__(self, database: Database, *, clock: Clock = utc_now) -> None:
        self._db = database
        self._clock = clock

    def create(
        self,
        *,
        agent_id: str | None,
        task_id: str | None,
        kind: str,
        message: str,
    ) -> str:
        notification_id = new_id()
        self._db.execute(
            """
            INSERT INTO notifications (id, agent_id, task_id, type, message, read, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (notification_id, agent_id, task_id, kind, message, False, self._clock()),
        )
        logger.info(
            "notification event=created notification_id=%s agent_id=%s task_id=%s type=%s",
            notification_id,
            agent_id,
            task_id,
            kind,
        )
        return notification_id

    def list_notifications(
        self,
        *,
        agent_id: str | None = None,
        unread_only: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Notification]:
        """Newest first, joined with the task title (null once the task is gone)."""
        conditions: list[str] = []
        params: list[object] = []
        if agent_id:
            conditions.append("n.agent_id = ?")
            params.append(agent_id)
        if unread_only:
            conditions.append("n.read = ?")
            params.append(False)

        sql = """
            SELECT n.*, t.title AS task_title
            FROM notifications n
            LEFT JOIN tasks t ON n.task_id = t.id
        """
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY n.created_at DESC, n.id DESC LIMIT ?"
        params.append(int(limit))

        return [Notification.model_validate(row) for row in self._db.fetch_all(sql, params)]

    def mark_read(self, notification_id: str) -> None:
        self._db.execute("UPDATE notifications SET read = ? WHERE id = ?", (True, notification_id))

    def mark_all_read(self, agent_id: str | None = None) -> int:
        if agent_id:
            result = self._db.execute(
                "UPDATE notifications SET read = ? WHERE agent_id = ?",
                (True, agent_id),
            )
        else:
            result = self._db.execute("UPDATE notifications SET read = ?", (True,))
        return result.rowcount
