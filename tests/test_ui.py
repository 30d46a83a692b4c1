from __future__ import annotations

from fastapi.testclient import TestClient

from mission_control.api.ui import render_homepage


def test_home_page_serves_html(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "<title>mission-control-test | Board</title>" in response.text
    for status in ("backlog", "todo", "in-progress", "done", "parked"):
        assert f'"{status}"' in response.text


def test_app_name_is_escaped() -> None:
    page = render_homepage(app_name="<Ops & Co>")
    assert "&lt;Ops &amp; Co&gt;" in page
    assert "<Ops & Co>" not in page


def test_page_reaches_task_detail_and_directory_endpoints(client: TestClient) -> None:
    page = client.get("/").text
    for element_id in (
        'id="assignee-filter"',
        'id="project-filter"',
        'id="task-dialog"',
        'id="comments-list"',
        'id="history-list"',
        'id="comment-form"',
        'id="delete-task"',
        'id="agent-form"',
        'id="project-form"',
    ):
        assert element_id in page
    assert "/api/tasks/${taskId}/comments" in page
    assert 'params.set("assignee", assignee)' in page
    assert '["agent", "/api/agents"], ["project", "/api/projects"]' in page
