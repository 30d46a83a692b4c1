"""Schema setup run once before the app serves requests.

Steps:
- create the six tables if they do not already exist;
- patch ``task_history.action`` onto databases created before it existed;
- create lookup indexes;
- seed the default agents when the agents table is empty.

Re-running on an initialized database changes nothing.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from mission_control.errors import InitializationError
from mission_control.models import DEFAULT_AGENT_EMOJI, DEFAULT_PROJECT_COLOR
from mission_control.storage.base import Database, Dialect

logger = logging.getLogger(__name__)

# (name, emoji, role) in insertion order.
DEFAULT_AGENTS: tuple[tuple[str, str, str], ...] = (
    ("Scooby", "🐕", "Coordinator"),
    ("Coder", "💻", "Development"),
    ("Researcher", "🔍", "Research & Analysis"),
    ("Builder", "🔧", "Workflows & Automation"),
)

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee_id ON tasks(assignee_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id)",
    "CREATE INDEX IF NOT EXISTS idx_comments_task_id ON comments(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_history_task_id ON task_history(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_agent_id ON notifications(agent_id)",
)

_POSTGRES_ACTION_PATCH = """
    DO $$
    BEGIN
        IF NOT EXISTS (
            SELECT 1
            FROM information_schema.columns
            WHERE table_schema = ANY (current_schemas(false))
              AND table_name = 'task_history'
              AND column_name = 'action'
        ) THEN
            ALTER TABLE task_history ADD COLUMN action TEXT NOT NULL DEFAULT 'update';
        END IF;
    END $$;
    """


def table_statements(dialect: Dialect) -> list[str]:
    """Return the CREATE TABLE statements for ``dialect``."""
    ts = dialect.timestamp_type
    now = dialect.now_expression
    return [
        f"""
        CREATE TABLE IF NOT EXISTS agents (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            emoji TEXT DEFAULT '{DEFAULT_AGENT_EMOJI}',
            role TEXT,
            status TEXT DEFAULT 'active',
            notify_telegram_id TEXT,
            created_at {ts} DEFAULT {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            client TEXT,
            description TEXT,
            color TEXT DEFAULT '{DEFAULT_PROJECT_COLOR}',
            status TEXT DEFAULT 'active',
            created_at {ts} DEFAULT {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            status TEXT NOT NULL DEFAULT 'backlog',
            priority TEXT NOT NULL DEFAULT 'medium',
            assignee_id TEXT,
            project_id TEXT,
            tags TEXT,
            due_date TEXT,
            created_at {ts} DEFAULT {now},
            updated_at {ts} DEFAULT {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS comments (
            id TEXT PRIMARY KEY,
            task_id TEXT NOT NULL,
            author TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at {ts} DEFAULT {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS task_history (
            id TEXT PRIMARY KEY,
            task_id TEXT NOT NULL,
            action TEXT NOT NULL,
            field TEXT,
            old_value TEXT,
            new_value TEXT,
            actor TEXT DEFAULT 'System',
            created_at {ts} DEFAULT {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS notifications (
            id TEXT PRIMARY KEY,
            agent_id TEXT,
            task_id TEXT,
            type TEXT NOT NULL,
            message TEXT NOT NULL,
            read {dialect.boolean_type} DEFAULT {dialect.false_literal},
            created_at {ts} DEFAULT {now}
        )
        """,
    ]


def initialize_schema(database: Database) -> None:
    """Bring the store to the expected shape, then seed defaults once.

    Any engine failure is re-raised as ``InitializationError``.
    """
    try:
        for statement in table_statements(database.dialect):
            database.execute(statement)
        _ensure_history_action_column(database)
        for statement in INDEXES:
            database.execute(statement)
        seeded = seed_default_agents(database)
    except database.errors as exc:
        raise InitializationError(f"Database initialization failed: {exc}") from exc
    logger.info(
        "schema event=initialized backend=%s seeded_agents=%s",
        database.dialect.name,
        seeded,
    )


def seed_default_agents(database: Database) -> int:
    """Insert ``DEFAULT_AGENTS`` when no agent exists. Returns the number inserted."""
    row = database.fetch_one("SELECT COUNT(*) AS count FROM agents")
    if row is not None and int(row["count"]) > 0:
        return 0
    now = datetime.now(tz=UTC)
    for offset, (name, emoji, role) in enumerate(DEFAULT_AGENTS):
        # Distinct timestamps keep the listing in seed order.
        database.execute(
            "INSERT INTO agents (id, name, emoji, role, created_at) VALUES (?, ?, ?, ?, ?)",
            (str(uuid.uuid4()), name, emoji, role, now + timedelta(milliseconds=offset)),
        )
    return len(DEFAULT_AGENTS)


def _ensure_history_action_column(database: Database) -> None:
    """Add ``task_history.action`` to databases created before the column existed."""
    if database.dialect.name == "postgres":
        database.execute(_POSTGRES_ACTION_PATCH)
        return

    columns = {row["name"] for row in database.fetch_all("PRAGMA table_info(task_history)")}
    if "action" in columns:
        return
    database.execute("ALTER TABLE task_history ADD COLUMN action TEXT NOT NULL DEFAULT 'update'")
    logger.info("schema event=migrated table=task_history column=action")
