"""Helpers shared by the board services."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def new_id() -> str:
    return str(uuid.uuid4())

# Task rows joined with display fields of their project and assignee. Both joins
# are outer: dangling references resolve to null fields.
TASK_VIEW_SQL = """
    SELECT t.*,
           p.name AS project_name,
           p.color AS project_color,
           p.client AS project_client,
           a.name AS assignee_name,
           a.emoji AS assignee_emoji
    FROM tasks t
    LEFT JOIN projects p ON t.project_id = p.id
    LEFT JOIN agents a ON t.assignee_id = a.id
"""
