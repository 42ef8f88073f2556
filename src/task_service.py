"""Task operations over the whole-collection store.

Each call loads the full collection, works on it in memory and, for mutations,
writes it back whole. Mutations hold the store's writer lock for the full cycle.
"""

from __future__ import annotations

import logging
import time
import uuid

import task_store
from models import Task

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def list_tasks() -> list[Task]:
    """Return every task in stored (insertion) order."""
    return task_store.get_store().load_all()


def get_task(task_id: str) -> Task | None:
    """Return the task with this exact id, or None if not found."""
    for task in task_store.get_store().load_all():
        if task.id == task_id:
            return task
    return None


def create_task(title: str, content: str) -> Task:
    """Append a new task with a fresh uuid4 id and the current time; return it."""
    if not title or not content:
        raise ValueError("Title and content required")
    store = task_store.get_store()
    with store.locked():
        tasks = store.load_all()
        task = Task(id=str(uuid.uuid4()), title=title, content=content, date=_now_ms())
        tasks.append(task)
        store.save_all(tasks)
    logger.info("Created task id=%s (%d total).", task.id, len(tasks))
    return task


def delete_task(task_id: str) -> bool:
    """Drop every task with this id. Returns False (and writes nothing) if none matched."""
    store = task_store.get_store()
    with store.locked():
        tasks = store.load_all()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            return False
        store.save_all(remaining)
    logger.info("Deleted task id=%s (%d left).", task_id, len(remaining))
    return True
