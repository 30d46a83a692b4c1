from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from mission_control.api import main as main_module
from mission_control.config.settings import Settings
from mission_control.errors import InitializationError
from mission_control.storage import SQLiteDatabase


def _agent_ids(client: TestClient) -> list[str]:
    return [agent["id"] for agent in client.get("/api/agents").json()]


def test_task_lifecycle_over_http(client: TestClient) -> None:
    agent_id = _agent_ids(client)[0]

    created = client.post(
        "/api/tasks",
        json={"title": "Ship release", "assignee_id": agent_id, "tags": ["release", "ops"]},
    )
    assert created.status_code == 200
    task = created.json()
    assert task["status"] == "backlog"
    assert task["priority"] == "medium"
    assert task["tags"] == "release,ops"

    patched = client.patch(
        f"/api/tasks/{task['id']}",
        json={"status": "in-progress", "actor": "Scooby"},
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "in-progress"
    assert patched.json()["title"] == "Ship release"

    detail = client.get(f"/api/tasks/{task['id']}").json()
    assert detail["assignee_name"] == "Scooby"
    assert [h["action"] for h in detail["history"]] == ["updated", "created"]
    assert detail["history"][0]["actor"] == "Scooby"

    deleted = client.delete(f"/api/tasks/{task['id']}")
    assert deleted.json() == {"success": True}
    assert client.get(f"/api/tasks/{task['id']}").status_code == 404


def test_form_style_blank_fields_are_unset(client: TestClient) -> None:
    response = client.post(
        "/api/tasks",
        json={
            "title": "From the board",
            "status": "",
            "priority": "",
            "assignee_id": "",
            "project_id": "",
            "due_date": "",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert (body["status"], body["priority"]) == ("backlog", "medium")
    assert body["assignee_id"] is None
    assert body["due_date"] is None
    assert client.get("/api/notifications").json() == []


def test_blank_title_is_a_400(client: TestClient) -> None:
    response = client.post("/api/tasks", json={"title": "   "})
    assert response.status_code == 400
    assert response.json() == {"error": "title is required"}


def test_values_outside_fixed_sets_are_rejected(client: TestClient) -> None:
    assert client.post("/api/tasks", json={"title": "x", "priority": "asap"}).status_code == 422
    task_id = client.post("/api/tasks", json={"title": "x"}).json()["id"]
    assert client.patch(f"/api/tasks/{task_id}", json={"status": "archived"}).status_code == 422


def test_missing_task_is_a_404(client: TestClient) -> None:
    assert client.get("/api/tasks/nope").status_code == 404
    response = client.patch("/api/tasks/nope", json={"status": "done"})
    assert response.status_code == 404
    assert "nope" in response.json()["error"]


def test_list_tasks_with_filters(client: TestClient) -> None:
    agent_id = _agent_ids(client)[1]
    client.post("/api/tasks", json={"title": "low", "priority": "low", "assignee_id": agent_id})
    client.post("/api/tasks", json={"title": "urgent", "priority": "urgent", "status": "todo"})

    titles = [task["title"] for task in client.get("/api/tasks").json()]
    assert titles == ["urgent", "low"]

    assert [t["title"] for t in client.get("/api/tasks", params={"status": "todo"}).json()] == ["urgent"]
    by_agent = client.get("/api/tasks", params={"assignee": agent_id}).json()
    assert [t["title"] for t in by_agent] == ["low"]
    assert by_agent[0]["assignee_name"] == "Coder"


def test_comments_endpoints(client: TestClient) -> None:
    task_id = client.post("/api/tasks", json={"title": "Review"}).json()["id"]

    comment = client.post(f"/api/tasks/{task_id}/comments", json={"content": "LGTM"})
    assert comment.status_code == 200
    assert comment.json()["author"] == "Anonymous"

    assert client.post(f"/api/tasks/{task_id}/comments", json={"content": ""}).status_code == 400

    listed = client.get(f"/api/tasks/{task_id}/comments").json()
    assert [c["content"] for c in listed] == ["LGTM"]

    removed = client.delete(f"/api/comments/{comment.json()['id']}")
    assert removed.json() == {"success": True}
    assert client.get(f"/api/tasks/{task_id}/comments").json() == []


def test_notification_endpoints(client: TestClient) -> None:
    first, second = _agent_ids(client)[:2]
    client.post("/api/tasks", json={"title": "For first", "assignee_id": first})
    client.post("/api/tasks", json={"title": "For second", "assignee_id": second})

    unread = client.get("/api/notifications", params={"agent_id": first, "unread": "true"}).json()
    assert [n["task_title"] for n in unread] == ["For first"]

    marked = client.patch(f"/api/notifications/{unread[0]['id']}/read")
    assert marked.json() == {"success": True}
    assert client.get("/api/notifications", params={"agent_id": first, "unread": "true"}).json() == []

    all_read = client.post("/api/notifications/mark-all-read", json={"agent_id": second})
    assert all_read.json() == {"success": True}
    assert client.get("/api/notifications", params={"unread": "true"}).json() == []

    client.post("/api/tasks", json={"title": "Another", "assignee_id": first})
    assert client.post("/api/notifications/mark-all-read").status_code == 200
    feed = client.get("/api/notifications").json()
    assert len(feed) == 3
    assert all(n["read"] for n in feed)


def test_stats_and_tags(client: TestClient) -> None:
    agent_id = _agent_ids(client)[0]
    project = client.post("/api/projects", json={"name": "Launch"}).json()
    client.post(
        "/api/tasks",
        json={"title": "a", "assignee_id": agent_id, "project_id": project["id"], "tags": ["b", "a"]},
    )
    client.post("/api/tasks", json={"title": "b", "status": "done", "tags": "c"})

    stats = client.get("/api/stats").json()
    assert stats["total"] == 2
    assert stats["byStatus"] == {"backlog": 1, "done": 1}
    assert len(stats["byAgent"]) == 4
    assert stats["byAgent"][0]["count"] == 1
    assert stats["byProject"] == [
        {"id": project["id"], "name": "Launch", "color": "#6366f1", "client": None, "count": 1}
    ]

    assert client.get("/api/tags").json() == ["a", "b", "c"]


def test_agent_crud(client: TestClient) -> None:
    created = client.post("/api/agents", json={"name": "Tester", "role": "QA"})
    assert created.status_code == 200
    agent = created.json()
    assert agent["emoji"] == "🤖"

    updated = client.patch(f"/api/agents/{agent['id']}", json={"status": "inactive", "emoji": "🧪"})
    assert updated.json()["status"] == "inactive"
    assert updated.json()["emoji"] == "🧪"
    assert updated.json()["role"] == "QA"

    assert client.post("/api/agents", json={"name": ""}).status_code == 422
    assert client.patch("/api/agents/missing", json={"name": "x"}).status_code == 404

    assert client.delete(f"/api/agents/{agent['id']}").json() == {"success": True}
    assert agent["id"] not in _agent_ids(client)


def test_project_crud(client: TestClient) -> None:
    created = client.post("/api/projects", json={"name": "Zeta", "client": "Acme"}).json()
    client.post("/api/projects", json={"name": "Alpha"})

    assert [p["name"] for p in client.get("/api/projects").json()] == ["Alpha", "Zeta"]

    archived = client.patch(f"/api/projects/{created['id']}", json={"status": "archived"}).json()
    assert archived["status"] == "archived"
    assert archived["client"] == "Acme"

    assert client.delete(f"/api/projects/{created['id']}").json() == {"success": True}
    assert [p["name"] for p in client.get("/api/projects").json()] == ["Alpha"]


def test_storage_failure_is_a_500(client: TestClient, database: SQLiteDatabase) -> None:
    database.execute("DROP TABLE notifications")

    response = client.get("/api/notifications")

    assert response.status_code == 500
    assert "no such table" in response.json()["error"]


def test_lifespan_opens_configured_store(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(database_url="", sqlite_path=tmp_path / "runtime" / "board.db")

    app = main_module.create_app(settings_override=settings)
    with TestClient(app) as client:
        assert client.get("/api/health").json() == {"status": "ok", "db": "sqlite", "tasks": 0}
        assert len(client.get("/api/agents").json()) == 4

    assert (tmp_path / "runtime" / "board.db").exists()


def test_startup_fails_when_initialization_fails(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)

    def failing_initialize(database: object) -> None:
        raise InitializationError("Database initialization failed: boom")

    monkeypatch.setattr(main_module, "initialize_schema", failing_initialize)
    app = main_module.create_app(
        settings_override=Settings(database_url="", sqlite_path=tmp_path / "board.db")
    )

    with pytest.raises(InitializationError, match="boom"):
        with TestClient(app):
            pass


def test_missing_title_is_a_400_like_a_blank_one(client: TestClient) -> None:
    for body in ({"description": "no title"}, {"title": None}):
        response = client.post("/api/tasks", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "title is required"}
    assert client.get("/api/tasks").json() == []
