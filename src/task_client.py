"""HTTP client for the Tasks API with a local cache and a filtered/sorted view.

The cache is replaced on refresh and patched (append / filter out) only after
the server confirms a create or delete. Failures never touch the cache; they
only set an error status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

import task_view
from models import SortMode, Task

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:5000"


class TaskApiError(Exception):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class Status:
    text: str = ""
    kind: str = "info"  # info | ok | error


@dataclass
class TaskForm:
    title: str = ""
    content: str = ""


class TaskClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, http: httpx.Client | None = None) -> None:
        self._http = http if http is not None else httpx.Client(base_url=base_url)
        self.cache: list[Task] = []
        self.search_query = ""
        self.sort_mode: SortMode | None = None
        self.status = Status()
        self.form = TaskForm()

    def close(self) -> None:
        self._http.close()

    # ---- HTTP ----

    def _request(self, method: str, path: str, json: dict | None = None):
        res = self._http.request(method, path, json=json)
        try:
            data = res.json()
        except ValueError:
            data = None
        if not res.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            raise TaskApiError(message or f"HTTP {res.status_code}", res.status_code)
        return data

    def _set_status(self, text: str, kind: str = "info") -> None:
        self.status = Status(text, kind)

    def _fail(self, err: Exception, fallback: str) -> None:
        logger.warning("%s: %s", fallback, err)
        self._set_status(str(err) or fallback, "error")

    # ---- operations ----

    def refresh(self) -> bool:
        """Reload the full list from the server. Clears the search query."""
        self.search_query = ""
        self._set_status("Loading tasks...")
        try:
            data = self._request("GET", "/api/tasks")
            tasks = [Task.model_validate(item) for item in data] if isinstance(data, list) else []
        except (httpx.HTTPError, TaskApiError, ValueError) as e:
            self._fail(e, "Failed to load tasks")
            return False
        self.cache = tasks
        self._set_status("")
        return True

    def submit(self, title: str, content: str) -> bool:
        """Form submit: trim, reject empty fields locally, otherwise create."""
        self.form = TaskForm(title, content)
        title, content = title.strip(), content.strip()
        if not title or not content:
            self._set_status("Title and content are required", "error")
            return False
        return self.create(title, content)

    def create(self, title: str, content: str) -> bool:
        self._set_status("Creating task...")
        try:
            data = self._request("POST", "/api/task", json={"title": title, "content": content})
            task = Task.model_validate(data)
        except (httpx.HTTPError, TaskApiError, ValueError) as e:
            self._fail(e, "Failed to create task")
            return False
        self.cache.append(task)
        self.form = TaskForm()
        self._set_status("Task added", "ok")
        return True

    def delete(self, task_id: str) -> bool:
        self._set_status("Deleting task...")
        try:
            self._request("DELETE", f"/api/task/{quote(task_id, safe='')}")
        except (httpx.HTTPError, TaskApiError, ValueError) as e:
            self._fail(e, "Failed to delete task")
            return False
        self.cache = [t for t in self.cache if t.id != task_id]
        self._set_status("Task deleted", "ok")
        return True

    def clear_form(self) -> None:
        self.form = TaskForm()
        self._set_status("Cleared")

    # ---- view ----

    def set_search(self, query: str) -> None:
        self.search_query = query

    def set_sort(self, mode: SortMode | str | None) -> None:
        self.sort_mode = SortMode(mode) if mode else None

    def view(self) -> list[Task]:
        return task_view.compute_view(self.cache, self.search_query, self.sort_mode)

    def render(self) -> str:
        """HTML for the current view, with status line, count and empty state."""
        return task_view.render_tasks(self.view(), self.status.text, self.status.kind)
