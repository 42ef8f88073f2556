"""Filter/sort view over a task list, and its HTML rendering.

Shared by TaskClient and the server-rendered page. compute_view never mutates
its input; rendering goes through an autoescaping Jinja2 environment so task
title, content and id cannot inject markup.
"""

from __future__ import annotations

import locale
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from models import SortMode, Task

_VIS_ROOT = Path(__file__).resolve().parent / "visualization"

STATUS_PREFIX = {"ok": "✅ ", "error": "⚠️ "}


def parse_sort_mode(value: str | SortMode | None) -> SortMode | None:
    """Return the SortMode for value, or None when it is empty or unknown."""
    if not value:
        return None
    try:
        return SortMode(value)
    except ValueError:
        return None


def _title_key(task: Task) -> str:
    # accented letters sort with their base letter
    decomposed = unicodedata.normalize("NFKD", task.title.casefold())
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return locale.strxfrm(base)


def compute_view(
    tasks: Iterable[Task],
    search_query: str = "",
    sort_mode: SortMode | str | None = None,
) -> list[Task]:
    """Return a new list: tasks matching search_query (case-insensitive substring
    of title or content), ordered by sort_mode. No sort mode keeps input order.
    """
    q = (search_query or "").strip().casefold()
    view = list(tasks)
    if q:
        view = [t for t in view if q in t.title.casefold() or q in t.content.casefold()]

    mode = SortMode(sort_mode) if sort_mode else None
    if mode is SortMode.NEWEST:
        view.sort(key=lambda t: t.date or 0, reverse=True)
    elif mode is SortMode.OLDEST:
        view.sort(key=lambda t: t.date or 0)
    elif mode is SortMode.AZ:
        view.sort(key=_title_key)
    elif mode is SortMode.ZA:
        view.sort(key=_title_key, reverse=True)
    return view


def format_date(ms: object) -> str:
    if not isinstance(ms, int) or isinstance(ms, bool):
        return "—"
    return datetime.fromtimestamp(ms / 1000).strftime("%b %d, %Y, %H:%M")


def format_status(text: str, kind: str = "info") -> str:
    return f"{STATUS_PREFIX.get(kind, '')}{text}" if text else ""


env = Environment(
    loader=FileSystemLoader(str(_VIS_ROOT / "templates")),
    autoescape=select_autoescape(["html"]),
)
env.filters["format_date"] = format_date


def render_tasks(view: list[Task], status: str = "", status_kind: str = "info") -> str:
    """Render the task list fragment: status line, count, cards and empty state."""
    return env.get_template("tasks.html").render(
        tasks=view,
        status=format_status(status, status_kind),
        status_kind=status_kind,
    )
