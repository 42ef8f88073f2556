"""JSON file persistence for the task collection.

The whole collection is read on every load and rewritten on every save.
Path and write serialization come from env (TASKS_DB_PATH, TASKS_SERIALIZE_WRITES).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from pydantic import ValidationError

from models import Task

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DB_PATH = _REPO_ROOT / "DB" / "Tasks.json"


class StoreError(Exception):
    """Reading or writing the task file failed."""


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("true", "1", "yes")


class TaskStore:
    def __init__(self, path: str | Path, serialize_writes: bool = True) -> None:
        self.path = Path(path)
        self.serialize_writes = serialize_writes
        self._lock = threading.RLock()
        logger.info("TaskStore ready path=%s serialize_writes=%s", self.path, serialize_writes)

    def load_all(self) -> list[Task]:
        """Return every stored task. Missing or blank file is an empty collection."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt task file {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Corrupt task file {self.path}: expected a JSON array")
        try:
            return [Task.model_validate(item) for item in data]
        except ValidationError as e:
            raise StoreError(f"Corrupt task file {self.path}: {e}") from e

    def save_all(self, tasks: Iterable[Task]) -> None:
        """Replace the stored collection (write to a temp file, then rename over)."""
        payload = json.dumps([t.model_dump(mode="json") for t in tasks], indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".tasks-", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Failed to write {self.path}: {e}") from e
        logger.debug("Saved %d bytes to %s", len(payload), self.path)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the single-writer lock for one load/modify/save cycle (no-op when disabled)."""
        if not self.serialize_writes:
            yield
            return
        with self._lock:
            yield


_store: TaskStore | None = None
_store_lock = threading.Lock()


def get_store() -> TaskStore:
    """Return the shared TaskStore built from env."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                path = os.environ.get("TASKS_DB_PATH") or DEFAULT_DB_PATH
                _store = TaskStore(path, serialize_writes=_env_flag("TASKS_SERIALIZE_WRITES", "true"))
    return _store
