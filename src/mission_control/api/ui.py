from __future__ import annotations

from html import escape

_PAGE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>__APP_NAME__ | Board</title>
  <style>
    :root {
      --bg: #f3efe6;
      --panel: #fffaf0;
      --ink: #112433;
      --muted: #5c6b74;
      --accent: #6366f1;
      --line: #d7d1c3;
      --urgent: #b00020;
      --high: #d9730d;
      --medium: #0f8b8d;
      --low: #8a9299;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      font-family: system-ui, sans-serif;
      color: var(--ink);
      background: var(--bg);
    }
    header {
      display: flex;
      align-items: center;
      justify-content: space-between;
      gap: 12px;
      padding: 14px 20px;
      border-bottom: 1px solid var(--line);
      background: var(--panel);
    }
    header h1 { margin: 0; font-size: 1.2rem; }
    .stats { color: var(--muted); font-size: 0.9rem; }
    .toolbar { display: flex; gap: 8px; align-items: center; }
    .bell { cursor: pointer; position: relative; }
    .bell .badge {
      position: absolute; top: -6px; right: -10px;
      background: var(--urgent); color: white;
      border-radius: 999px; padding: 0 6px; font-size: 0.7rem;
    }
    input, select, textarea, button {
      padding: 6px 8px; border: 1px solid var(--line); border-radius: 8px;
      font: inherit;
    }
    button { cursor: pointer; background: white; }
    button.primary { background: var(--accent); color: white; border: none; }
    button.danger { background: var(--urgent); color: white; border: none; }
    form.new-task {
      display: flex; flex-wrap: wrap; gap: 8px;
      padding: 12px 20px;
    }
    .board {
      display: grid;
      grid-template-columns: repeat(5, minmax(180px, 1fr));
      gap: 12px;
      padding: 0 20px 20px;
    }
    .column {
      background: var(--panel);
      border: 1px solid var(--line);
      border-radius: 12px;
      padding: 10px;
      min-height: 200px;
    }
    .column h2 {
      margin: 0 0 8px; font-size: 0.95rem;
      display: flex; justify-content: space-between;
    }
    .task-card {
      background: white;
      border: 1px solid var(--line);
      border-left: 4px solid var(--low);
      border-radius: 8px;
      padding: 8px;
      margin-bottom: 8px;
      cursor: grab;
    }
    .task-card.priority-urgent { border-left-color: var(--urgent); }
    .task-card.priority-high { border-left-color: var(--high); }
    .task-card.priority-medium { border-left-color: var(--medium); }
    .task-card .meta { color: var(--muted); font-size: 0.8rem; margin-top: 4px; }
    .task-card .tag {
      display: inline-block; background: #eef; border-radius: 6px;
      padding: 0 5px; margin-right: 3px; font-size: 0.75rem;
    }
    .overdue { color: var(--urgent); font-weight: 600; }
    #notifications {
      display: none;
      position: absolute; right: 20px; top: 56px; width: 320px;
      background: var(--panel); border: 1px solid var(--line); border-radius: 10px;
      padding: 8px; max-height: 60vh; overflow: auto; z-index: 5;
    }
    #notifications .item { padding: 6px; border-bottom: 1px solid var(--line); font-size: 0.85rem; }
    #notifications .item.unread { font-weight: 600; }
    dialog {
      border: 1px solid var(--line); border-radius: 12px;
      background: var(--panel); color: var(--ink);
      width: min(920px, 95vw); padding: 16px;
    }
    dialog .layout { display: grid; grid-template-columns: 3fr 2fr; gap: 16px; }
    dialog form { display: flex; flex-direction: column; gap: 8px; }
    dialog .row { display: flex; gap: 8px; flex-wrap: wrap; }
    dialog .row > * { flex: 1; }
    dialog h3 { margin: 4px 0; font-size: 0.95rem; }
    .feed { max-height: 220px; overflow: auto; font-size: 0.85rem; }
    .feed .entry { padding: 6px 0; border-bottom: 1px solid var(--line); }
    .feed .time { color: var(--muted); font-size: 0.75rem; }
    .directory-list { list-style: none; padding: 0; margin: 0 0 8px; }
    .directory-list li { padding: 4px 6px; cursor: pointer; border-radius: 6px; }
    .directory-list li:hover { background: #eef; }
  </style>
</head>
<body>
  <header>
    <h1>__APP_NAME__</h1>
    <span class="stats" id="stats"></span>
    <span class="toolbar">
      <select id="assignee-filter"><option value="">All agents</option></select>
      <select id="project-filter"><option value="">All projects</option></select>
      <button type="button" id="open-directory">Agents &amp; projects</button>
      <span class="bell" id="bell">&#128276;<span class="badge" id="badge"></span></span>
    </span>
  </header>
  <div id="notifications"></div>

  <form class="new-task" id="new-task">
    <input name="title" placeholder="New task title" required>
    <select name="priority">
      <option value="urgent">urgent</option>
      <option value="high">high</option>
      <option value="medium" selected>medium</option>
      <option value="low">low</option>
    </select>
    <select name="assignee_id" class="agent-select"></select>
    <select name="project_id" class="project-select"></select>
    <input name="tags" placeholder="tags, comma separated">
    <input name="due_date" type="date">
    <button type="submit" class="primary">Add task</button>
  </form>

  <main class="board" id="board"></main>

  <dialog id="task-dialog">
    <div class="layout">
      <form id="task-form" method="dialog">
        <input type="hidden" name="id">
        <input name="title" placeholder="Title" required>
        <textarea name="description" rows="4" placeholder="Description"></textarea>
        <div class="row">
          <select name="status">
            <option value="backlog">backlog</option>
            <option value="todo">todo</option>
            <option value="in-progress">in-progress</option>
            <option value="done">done</option>
            <option value="parked">parked</option>
          </select>
          <select name="priority">
            <option value="urgent">urgent</option>
            <option value="high">high</option>
            <option value="medium">medium</option>
            <option value="low">low</option>
          </select>
        </div>
        <div class="row">
          <select name="assignee_id" class="agent-select"></select>
          <select name="project_id" class="project-select"></select>
        </div>
        <div class="row">
          <input name="tags" placeholder="tags, comma separated">
          <input name="due_date" type="date">
        </div>
        <div class="row">
          <button type="submit" class="primary">Save</button>
          <button type="button" class="danger" id="delete-task">Delete</button>
          <button type="button" id="close-task">Close</button>
        </div>
      </form>
      <aside>
        <h3>Comments</h3>
        <div class="feed" id="comments-list"></div>
        <form id="comment-form" method="dialog">
          <input name="author" placeholder="Your name">
          <textarea name="content" rows="2" placeholder="Add a comment" required></textarea>
          <button type="submit">Comment</button>
        </form>
        <h3>History</h3>
        <div class="feed" id="history-list"></div>
      </aside>
    </div>
  </dialog>

  <dialog id="directory-dialog">
    <div class="layout">
      <section>
        <h3>Agents</h3>
        <ul class="directory-list" id="agent-list"></ul>
        <form id="agent-form" method="dialog">
          <input type="hidden" name="id">
          <div class="row">
            <input name="emoji" placeholder="&#129302;" maxlength="4">
            <input name="name" placeholder="Name" required>
          </div>
          <input name="role" placeholder="Role">
          <div class="row">
            <button type="submit" class="primary">Save agent</button>
            <button type="button" class="danger" id="delete-agent">Delete</button>
            <button type="button" id="new-agent">New</button>
          </div>
        </form>
      </section>
      <section>
        <h3>Projects</h3>
        <ul class="directory-list" id="project-list"></ul>
        <form id="project-form" method="dialog">
          <input type="hidden" name="id">
          <div class="row">
            <input name="name" placeholder="Name" required>
            <input name="color" type="color" value="#6366f1">
          </div>
          <input name="client" placeholder="Client">
          <textarea name="description" rows="2" placeholder="Description"></textarea>
          <div class="row">
            <button type="submit" class="primary">Save project</button>
            <button type="button" class="danger" id="delete-project">Delete</button>
            <button type="button" id="new-project">New</button>
          </div>
        </form>
      </section>
    </div>
    <button type="button" id="close-directory">Close</button>
  </dialog>

  <script>
    const STATUSES = ["backlog", "todo", "in-progress", "done", "parked"];
    const POLL_MS = 15000;
    let agents = [];
    let projects = [];

    async function api(path, options = {}) {
      const response = await fetch(path, {
        headers: { "Content-Type": "application/json" },
        ...options,
      });
      const body = await response.json();
      if (!response.ok) throw new Error(body.error || body.detail || response.statusText);
      return body;
    }

    function text(value) {
      const span = document.createElement("span");
      span.textContent = value == null ? "" : String(value);
      return span.innerHTML;
    }

    function formatTime(value) {
      return value ? new Date(value).toLocaleString() : "";
    }

    function splitTags(raw) {
      return (raw || "").split(",").map((tag) => tag.trim()).filter(Boolean);
    }

    function agentName(id) {
      const agent = agents.find((item) => item.id === id);
      return agent ? agent.name : id || "nobody";
    }

    function fillSelects(selector, items, emptyLabel, label) {
      for (const select of document.querySelectorAll(selector)) {
        const current = select.value;
        select.innerHTML = `<option value="">${emptyLabel}</option>` +
          items.map((item) => `<option value="${text(item.id)}">${text(label(item))}</option>`).join("");
        select.value = current;
      }
    }

    function renderBoard(tasks) {
      const board = document.getElementById("board");
      board.innerHTML = "";
      for (const status of STATUSES) {
        const columnTasks = tasks.filter((task) => task.status === status);
        const column = document.createElement("section");
        column.className = "column";
        column.dataset.status = status;
        column.innerHTML = `<h2><span>${status}</span><span>${columnTasks.length}</span></h2>`;
        column.addEventListener("dragover", (event) => event.preventDefault());
        column.addEventListener("drop", async (event) => {
          event.preventDefault();
          const taskId = event.dataTransfer.getData("text/plain");
          await api(`/api/tasks/${taskId}`, {
            method: "PATCH",
            body: JSON.stringify({ status }),
          });
          refresh();
        });
        for (const task of columnTasks) column.appendChild(renderCard(task));
        board.appendChild(column);
      }
    }

    function renderCard(task) {
      const card = document.createElement("article");
      card.className = `task-card priority-${task.priority}`;
      card.draggable = true;
      card.addEventListener("dragstart", (event) => {
        event.dataTransfer.setData("text/plain", task.id);
      });
      card.addEventListener("click", () => openTask(task.id));
      const tags = splitTags(task.tags).map((tag) => `<span class="tag">${text(tag)}</span>`).join("");
      const overdue = task.due_date && task.status !== "done" && new Date(task.due_date) < new Date();
      const due = task.due_date
        ? `<span class="${overdue ? "overdue" : ""}">due ${text(task.due_date)}</span>`
        : "";
      const assignee = task.assignee_name
        ? `${text(task.assignee_emoji || "")} ${text(task.assignee_name)}`
        : "Unassigned";
      const project = task.project_name
        ? `<span style="color:${text(task.project_color || "")}">&#9679;</span> ${text(task.project_name)}`
        : "";
      card.innerHTML = `
        <div>${text(task.title)}</div>
        <div class="meta">${text(task.priority)} &middot; ${assignee} ${due}</div>
        <div class="meta">${project} ${tags}</div>`;
      return card;
    }

    function describeHistory(entry) {
      const who = text(entry.actor || "System");
      if (entry.action === "created") return `${who} created the task`;
      if (entry.action === "comment") return `${who} commented`;
      if (entry.field === "assignee_id") {
        return `${who} assigned ${text(agentName(entry.new_value))} (was ${text(agentName(entry.old_value))})`;
      }
      return `${who} changed ${text(entry.field || "task")}: ${text(entry.old_value)} &rarr; ${text(entry.new_value)}`;
    }

    async function openTask(taskId) {
      const task = await api(`/api/tasks/${taskId}`);
      const form = document.getElementById("task-form");
      for (const name of ["id", "title", "description", "status", "priority", "assignee_id", "project_id", "tags", "due_date"]) {
        form.elements[name].value = task[name] || "";
      }
      document.getElementById("comments-list").innerHTML = task.comments.length
        ? task.comments.map((comment) =>
            `<div class="entry"><strong>${text(comment.author)}</strong> ${text(comment.content)}` +
            `<div class="time">${formatTime(comment.created_at)}</div></div>`).join("")
        : "<div class='entry'>No comments yet</div>";
      document.getElementById("history-list").innerHTML = task.history.length
        ? task.history.map((entry) =>
            `<div class="entry">${describeHistory(entry)}` +
            `<div class="time">${formatTime(entry.created_at)}</div></div>`).join("")
        : "<div class='entry'>No history</div>";
      const dialog = document.getElementById("task-dialog");
      if (!dialog.open) dialog.showModal();
    }

    async function refreshStats() {
      const stats = await api("/api/stats");
      document.getElementById("stats").textContent =
        `${stats.total} tasks` +
        STATUSES.map((status) => ` | ${status}: ${stats.byStatus[status] || 0}`).join("");
    }

    function renderDirectory() {
      document.getElementById("agent-list").innerHTML = agents
        .map((agent) => `<li data-id="${text(agent.id)}">${text(agent.emoji || "")} ${text(agent.name)}` +
          ` <small>${text(agent.role || "")}</small></li>`).join("");
      document.getElementById("project-list").innerHTML = projects
        .map((project) => `<li data-id="${text(project.id)}"><span style="color:${text(project.color || "")}">&#9679;</span> ` +
          `${text(project.name)} <small>${text(project.client || "")} ${text(project.status)}</small></li>`).join("");
      for (const node of document.querySelectorAll("#agent-list li")) {
        node.addEventListener("click", () => editRecord("agent-form", agents, node.dataset.id, ["name", "emoji", "role"]));
      }
      for (const node of document.querySelectorAll("#project-list li")) {
        node.addEventListener("click", () =>
          editRecord("project-form", projects, node.dataset.id, ["name", "client", "description", "color"]));
      }
    }

    function editRecord(formId, items, id, fields) {
      const record = items.find((item) => item.id === id);
      const form = document.getElementById(formId);
      form.reset();
      form.elements.id.value = record ? record.id : "";
      for (const name of fields) {
        if (record && record[name] != null) form.elements[name].value = record[name];
      }
    }

    async function refreshDirectory() {
      [agents, projects] = await Promise.all([api("/api/agents"), api("/api/projects")]);
      fillSelects(".agent-select", agents, "Unassigned", (agent) => `${agent.emoji || ""} ${agent.name}`);
      fillSelects("#assignee-filter", agents, "All agents", (agent) => `${agent.emoji || ""} ${agent.name}`);
      fillSelects(".project-select", projects, "No project", (project) => project.name);
      fillSelects("#project-filter", projects, "All projects",
        (project) => project.client ? `${project.name} (${project.client})` : project.name);
      renderDirectory();
    }

    async function refreshNotifications() {
      const items = await api("/api/notifications");
      const unread = items.filter((item) => !item.read).length;
      document.getElementById("badge").textContent = unread ? String(unread) : "";
      const panel = document.getElementById("notifications");
      panel.innerHTML = items
        .map(
          (item) =>
            `<div class="item ${item.read ? "" : "unread"}" data-id="${text(item.id)}">` +
            `${text(item.message)}</div>`
        )
        .join("") || "<div class='item'>No notifications</div>";
      for (const node of panel.querySelectorAll(".item[data-id]")) {
        node.addEventListener("click", async () => {
          await api(`/api/notifications/${node.dataset.id}/read`, { method: "PATCH" });
          refreshNotifications();
        });
      }
    }

    async function refresh() {
      const params = new URLSearchParams();
      const assignee = document.getElementById("assignee-filter").value;
      const project = document.getElementById("project-filter").value;
      if (assignee) params.set("assignee", assignee);
      if (project) params.set("project", project);
      const query = params.toString();
      renderBoard(await api(`/api/tasks${query ? `?${query}` : ""}`));
      await Promise.all([refreshStats(), refreshNotifications()]);
    }

    function formPayload(form) {
      const payload = Object.fromEntries(new FormData(form).entries());
      delete payload.id;
      return payload;
    }

    document.getElementById("bell").addEventListener("click", () => {
      const panel = document.getElementById("notifications");
      panel.style.display = panel.style.display === "block" ? "none" : "block";
    });

    document.getElementById("assignee-filter").addEventListener("change", refresh);
    document.getElementById("project-filter").addEventListener("change", refresh);

    document.getElementById("new-task").addEventListener("submit", async (event) => {
      event.preventDefault();
      const payload = formPayload(event.target);
      payload.tags = splitTags(payload.tags);
      await api("/api/tasks", { method: "POST", body: JSON.stringify(payload) });
      event.target.reset();
      refresh();
    });

    document.getElementById("task-form").addEventListener("submit", async (event) => {
      event.preventDefault();
      const form = event.target;
      await api(`/api/tasks/${form.elements.id.value}`, {
        method: "PATCH",
        body: JSON.stringify(formPayload(form)),
      });
      document.getElementById("task-dialog").close();
      refresh();
    });

    document.getElementById("delete-task").addEventListener("click", async () => {
      const taskId = document.getElementById("task-form").elements.id.value;
      if (!taskId || !confirm("Delete this task?")) return;
      await api(`/api/tasks/${taskId}`, { method: "DELETE" });
      document.getElementById("task-dialog").close();
      refresh();
    });

    document.getElementById("close-task").addEventListener("click", () => {
      document.getElementById("task-dialog").close();
    });

    document.getElementById("comment-form").addEventListener("submit", async (event) => {
      event.preventDefault();
      const taskId = document.getElementById("task-form").elements.id.value;
      await api(`/api/tasks/${taskId}/comments`, {
        method: "POST",
        body: JSON.stringify(formPayload(event.target)),
      });
      event.target.elements.content.value = "";
      openTask(taskId);
    });

    document.getElementById("open-directory").addEventListener("click", () => {
      document.getElementById("directory-dialog").showModal();
    });

    document.getElementById("close-directory").addEventListener("click", () => {
      document.getElementById("directory-dialog").close();
    });

    for (const [kind, path] of [["agent", "/api/agents"], ["project", "/api/projects"]]) {
      const form = document.getElementById(`${kind}-form`);
      form.addEventListener("submit", async (event) => {
        event.preventDefault();
        const id = form.elements.id.value;
        await api(id ? `${path}/${id}` : path, {
          method: id ? "PATCH" : "POST",
          body: JSON.stringify(formPayload(form)),
        });
        form.reset();
        form.elements.id.value = "";
        await refreshDirectory();
        refresh();
      });
      document.getElementById(`delete-${kind}`).addEventListener("click", async () => {
        const id = form.elements.id.value;
        if (!id || !confirm(`Delete this ${kind}?`)) return;
        await api(`${path}/${id}`, { method: "DELETE" });
        form.reset();
        form.elements.id.value = "";
        await refreshDirectory();
        refresh();
      });
      document.getElementById(`new-${kind}`).addEventListener("click", () => {
        form.reset();
        form.elements.id.value = "";
      });
    }

    refreshDirectory().then(refresh);
    setInterval(refresh, POLL_MS);
  </script>
</body>
</html>
"""


def render_homepage(app_name: str = "mission-control") -> str:
    return _PAGE.replace("__APP_NAME__", escape(app_name))
