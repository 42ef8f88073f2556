"""Lost-update race: concurrent read-modify-write cycles with and without the writer lock."""

import threading
import time

import pytest

import task_service
import task_store
from task_store import TaskStore


class _BarrierStore(TaskStore):
    """Every load waits until two loads are in flight, forcing both to see the same state."""

    def __init__(self, path, serialize_writes):
        super().__init__(path, serialize_writes=serialize_writes)
        self.barrier = threading.Barrier(2, timeout=5)

    def load_all(self):
        tasks = super().load_all()
        self.barrier.wait()
        return tasks


class _SlowStore(TaskStore):
    def load_all(self):
        tasks = super().load_all()
        time.sleep(0.05)
        return tasks


def _create_concurrently(n):
    errors = []

    def worker(i):
        try:
            task_service.create_task(f"T{i}", "C")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return errors


def test_unserialized_creates_lose_an_update(tmp_path, monkeypatch):
    s = _BarrierStore(tmp_path / "Tasks.json", serialize_writes=False)
    monkeypatch.setattr(task_store, "get_store", lambda: s)
    assert _create_concurrently(2) == []
    s.barrier = threading.Barrier(1)
    assert len(s.load_all()) == 1


@pytest.mark.parametrize("n", [2, 8])
def test_serialized_creates_keep_every_task(tmp_path, monkeypatch, n):
    s = _SlowStore(tmp_path / "Tasks.json", serialize_writes=True)
    monkeypatch.setattr(task_store, "get_store", lambda: s)
    assert _create_concurrently(n) == []
    assert len(s.load_all()) == n


def test_serialized_create_and_delete_do_not_interfere(tmp_path, monkeypatch):
    s = _SlowStore(tmp_path / "Tasks.json", serialize_writes=True)
    monkeypatch.setattr(task_store, "get_store", lambda: s)
    doomed = task_service.create_task("doomed", "x")

    t1 = threading.Thread(target=task_service.delete_task, args=(doomed.id,))
    t2 = threading.Thread(target=task_service.create_task, args=("kept", "y"))
    t1.start()
    t2.start()
    t1.join(timeout=10)
    t2.join(timeout=10)

    assert [t.title for t in s.load_all()] == ["kept"]


def test_get_store_builds_one_store_under_concurrent_first_use(tmp_path, monkeypatch):
    monkeypatch.setattr(task_store, "_store", None)
    monkeypatch.setenv("TASKS_DB_PATH", str(tmp_path / "Tasks.json"))
    real_init = TaskStore.__init__

    def slow_init(self, *args, **kwargs):
        time.sleep(0.05)
        real_init(self, *args, **kwargs)

    monkeypatch.setattr(TaskStore, "__init__", slow_init)
    start = threading.Barrier(4, timeout=5)
    stores = []

    def worker():
        start.wait()
        stores.append(task_store.get_store())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert len(stores) == 4
    assert len({id(s) for s in stores}) == 1
