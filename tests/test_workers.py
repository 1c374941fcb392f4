"""Unit tests for the worker pool."""

from __future__ import annotations

import queue
import threading
from collections import Counter

import pytest

from ioperf.benchmarks.base import OperationOutcome, RunContext
from ioperf.benchmarks.tasks import generate_tasks
from ioperf.benchmarks.workers import WorkerPool, fill_task_queue


class RecordingBackend:
    """In-memory backend that records which operation each path saw."""

    name = "recording"
    kind = "mem"
    path_prefix = "mem"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, op: str, path: str, nbytes: int) -> OperationOutcome:
        if self.fail:
            raise RuntimeError("backend exploded")
        with self._lock:
            self.calls.append((op, path))
        return OperationOutcome(operation=f"mem-{op}", path=path, succeeded=True, bytes=nbytes)

    def write(self, path: str, context: RunContext) -> OperationOutcome:
        return self._record("write", path, len(context.payload))

    def read(self, path: str, context: RunContext) -> OperationOutcome:
        return self._record("read", path, 7)


def run_pool(backend, operation: str, iterations: int, files: int, threads: int, payload=b""):
    tasks = list(generate_tasks(backend.path_prefix, iterations, files))
    task_queue = fill_task_queue(tasks, capacity=iterations)
    result_queue = queue.Queue(maxsize=iterations)
    pool = WorkerPool(backend, RunContext(operation=operation, payload=payload), threads)
    pool.start(task_queue, result_queue)
    pool.join()
    outcomes = [result_queue.get_nowait() for _ in range(iterations)]
    assert result_queue.empty()
    return tasks, outcomes


def test_pool_processes_each_task_once() -> None:
    backend = RecordingBackend()
    tasks, outcomes = run_pool(backend, "read", iterations=40, files=6, threads=4)

    assert len(outcomes) == 40
    assert Counter(o.path for o in outcomes) == Counter(t.path for t in tasks)
    assert Counter(path for _, path in backend.calls) == Counter(t.path for t in tasks)
    assert {o.worker_id for o in outcomes} <= set(range(4))


def test_pool_dispatches_write() -> None:
    backend = RecordingBackend()
    _, outcomes = run_pool(backend, "write", iterations=3, files=1, threads=2, payload=b"abc")

    assert {op for op, _ in backend.calls} == {"write"}
    assert all(o.bytes == 3 for o in outcomes)


def test_pool_more_threads_than_tasks() -> None:
    backend = RecordingBackend()
    _, outcomes = run_pool(backend, "read", iterations=2, files=2, threads=8)
    assert len(outcomes) == 2


def test_pool_unexpected_error_becomes_failed_outcome(capsys) -> None:
    backend = RecordingBackend(fail=True)
    _, outcomes = run_pool(backend, "read", iterations=5, files=2, threads=2)

    assert len(outcomes) == 5
    assert not any(o.succeeded for o in outcomes)
    assert all(o.bytes == 0 for o in outcomes)
    assert {o.operation for o in outcomes} == {"mem-read"}
    assert "backend exploded" in capsys.readouterr().err


def test_pool_rejects_zero_threads() -> None:
    with pytest.raises(ValueError):
        WorkerPool(RecordingBackend(), RunContext(operation="read"), 0)


def test_fill_task_queue_is_bounded() -> None:
    task_queue = fill_task_queue(generate_tasks("d", 3, 1), capacity=3)
    assert task_queue.full()
    assert task_queue.qsize() == 3
