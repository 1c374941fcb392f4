"""Parallel worker pool draining a shared task queue."""

import queue
import sys
import threading
import time
from typing import Iterable

from ioperf.benchmarks.base import OperationOutcome, RunContext, StorageBackend
from ioperf.benchmarks.tasks import Task


def fill_task_queue(tasks: Iterable[Task], capacity: int) -> "queue.Queue[Task]":
    """Place every task in a bounded queue sized to hold all of them."""
    task_queue: queue.Queue[Task] = queue.Queue(maxsize=capacity)
    for task in tasks:
        task_queue.put_nowait(task)
    return task_queue


class WorkerPool:
    """Fixed pool of threads running backend operations.

    Workers pull first-ready-first-served from one pre-filled queue and exit
    once it is empty. Each task yields exactly one outcome on the result queue.
    """

    def __init__(self, backend: StorageBackend, context: RunContext, threads: int):
        if threads < 1:
            raise ValueError(f"threads must be >= 1, got {threads}")
        self.backend = backend
        self.context = context
        self.threads = threads
        self._workers: list[threading.Thread] = []

    def start(
        self,
        task_queue: "queue.Queue[Task]",
        result_queue: "queue.Queue[OperationOutcome]",
    ) -> None:
        """Spawn all workers against the given queues."""
        for worker_id in range(self.threads):
            worker = threading.Thread(
                target=self._work,
                args=(worker_id, task_queue, result_queue),
                name=f"ioperf-worker-{worker_id}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)

    def join(self) -> None:
        """Wait for every worker to exit."""
        for worker in self._workers:
            worker.join()

    def _work(
        self,
        worker_id: int,
        task_queue: "queue.Queue[Task]",
        result_queue: "queue.Queue[OperationOutcome]",
    ) -> None:
        if self.context.debug:
            print(f"  [DEBUG] Worker {worker_id} started")

        while True:
            try:
                task = task_queue.get_nowait()
            except queue.Empty:
                break
            outcome = self._run_task(task)
            result_queue.put(outcome.with_worker(worker_id))

        if self.context.debug:
            print(f"  [DEBUG] Worker {worker_id} ended")

    def _run_task(self, task: Task) -> OperationOutcome:
        dispatched = time.perf_counter()
        try:
            if self.context.operation == "write":
                return self.backend.write(task.path, self.context)
            return self.backend.read(task.path, self.context)
        except Exception as e:
            # Every task must yield an outcome or the collector blocks forever.
            print(
                f"\n  [ERROR] Unexpected {type(e).__name__} on {task.path}: {e}",
                file=sys.stderr,
            )
            return OperationOutcome(
                operation=f"{self.backend.kind}-{self.context.operation}",
                path=task.path,
                start_time_ms=self.context.millis_since_start(dispatched),
                duration_ms=(time.perf_counter() - dispatched) * 1000,
            )
