"""Agents and projects: plain CRUD over the two reference tables.

Deleting either leaves tasks pointing at it untouched; task listings then show
the reference as unassigned / no project.
"""

from __future__ import annotations

import logging

from mission_control.errors import NotFoundError, ValidationError
from mission_control.models import (
    DEFAULT_AGENT_EMOJI,
    DEFAULT_PROJECT_COLOR,
    Agent,
    AgentCreate,
    AgentPatch,
    Patch,
    Project,
    ProjectCreate,
    ProjectPatch,
)
from mission_control.services.common import Clock, new_id, utc_now
from mission_control.storage.base import Database

logger = logging.getLogger(__name__)


class DirectoryService:
    def __init__(self, database: Database, *, clock: Clock = utc_now) -> None:
        self._db = database
        self._clock = clock

    # ---- agents ----

    def list_agents(self) -> list[Agent]:
        rows = self._db.fetch_all("SELECT * FROM agents ORDER BY created_at, id")
        return [Agent.model_validate(row) for row in rows]

    def get_agent(self, agent_id: str) -> Agent:
        row = self._db.fetch_one("SELECT * FROM agents WHERE id = ?", (agent_id,))
        if row is None:
            raise NotFoundError(f"Agent {agent_id} not found")
        return Agent.model_validate(row)

    def create_agent(self, payload: AgentCreate) -> Agent:
        name = payload.name.strip()
        if not name:
            raise ValidationError("name is required")
        agent_id = new_id()
        self._db.execute(
            """
            INSERT INTO agents (id, name, emoji, role, notify_telegram_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                agent_id,
                name,
                payload.emoji or DEFAULT_AGENT_EMOJI,
                payload.role,
                payload.notify_telegram_id,
                self._clock(),
            ),
        )
        logger.info("agent event=created agent_id=%s name=%s", agent_id, name)
        return self.get_agent(agent_id)

    def update_agent(self, agent_id: str, patch: AgentPatch) -> Agent:
        self.get_agent(agent_id)
        self._apply_patch("agents", agent_id, patch)
        return self.get_agent(agent_id)

    def delete_agent(self, agent_id: str) -> None:
        self._db.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
        logger.info("agent event=deleted agent_id=%s", agent_id)

    # ---- projects ----

    def list_projects(self) -> list[Project]:
        rows = self._db.fetch_all("SELECT * FROM projects ORDER BY name, id")
        return [Project.model_validate(row) for row in rows]

    def get_project(self, project_id: str) -> Project:
        row = self._db.fetch_one("SELECT * FROM projects WHERE id = ?", (project_id,))
        if row is None:
            raise NotFoundError(f"Project {project_id} not found")
        return Project.model_validate(row)

    def create_project(self, payload: ProjectCreate) -> Project:
        name = payload.name.strip()
        if not name:
            raise ValidationError("name is required")
        project_id = new_id()
        self._db.execute(
            """
            INSERT INTO projects (id, name, client, description, color, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                project_id,
                name,
                payload.client,
                payload.description,
                payload.color or DEFAULT_PROJECT_COLOR,
                self._clock(),
            ),
        )
        logger.info("project event=created project_id=%s name=%s", project_id, name)
        return self.get_project(project_id)

    def update_project(self, project_id: str, patch: ProjectPatch) -> Project:
        self.get_project(project_id)
        self._apply_patch("projects", project_id, patch)
        return self.get_project(project_id)

    def delete_project(self, project_id: str) -> None:
        self._db.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        logger.info("project event=deleted project_id=%s", project_id)

    def _apply_patch(self, table: str, record_id: str, patch: Patch) -> None:
        assignments = patch.assignments()
        if not assignments:
            return
        columns = ", ".join(f"{column} = ?" for column in assignments)
        self._db.execute(
            f"UPDATE {table} SET {columns} WHERE id = ?",
            (*assignments.values(), record_id),
        )
