import pytest
from fastapi.testclient import TestClient

import task_store
from api import app


@pytest.fixture
def store(tmp_path, monkeypatch):
    """A TaskStore on a temp file, installed as the shared store."""
    s = task_store.TaskStore(tmp_path / "DB" / "Tasks.json")
    monkeypatch.setattr(task_store, "get_store", lambda: s)
    return s


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c
