"""Benchmark orchestration: tasks, workers, collection and reporting."""

import queue
from dataclasses import dataclass
from datetime import datetime

from ioperf.benchmarks.base import OperationOutcome, RunContext, StorageBackend
from ioperf.benchmarks.stats import (
    ResultCollector,
    ResultSet,
    SummaryStats,
    aggregate,
    print_report,
    write_csv,
)
from ioperf.benchmarks.tasks import MIB, build_payload, generate_tasks, pool_paths
from ioperf.benchmarks.workers import WorkerPool, fill_task_queue
from ioperf.config import BenchmarkConfig
from ioperf.utils import format_duration, format_size


@dataclass
class BenchmarkReport:
    """Everything a completed run produced."""

    config: BenchmarkConfig
    results: ResultSet
    stats: SummaryStats


def print_parameters(config: BenchmarkConfig) -> None:
    """Print the parameters common to every backend."""
    print("TEST PARAMETERS")
    print(f"    Operation:   {config.label}")
    print(f"    Iterations:  {config.iterations}")
    print(f"    Threads:     {config.threads}")
    print(f"    Files:       {config.files}")
    print(f"    FileSizeMiB: {config.size_mib} ({format_size(config.size_mib * MIB)})")


def run_benchmark(config: BenchmarkConfig, backend: StorageBackend) -> BenchmarkReport | None:
    """Run one fixed batch of operations and report on it.

    Configuration must already be validated. Returns None for a dry run,
    after parameters are printed and before any task or worker exists.
    """
    print_parameters(config)
    backend.describe()

    if config.dry_run:
        print("Dry run: stopping before any I/O")
        return None

    payload = build_payload(config.size_mib) if config.operation == "write" else b""
    task_queue = fill_task_queue(
        generate_tasks(backend.path_prefix, config.iterations, config.files),
        capacity=config.iterations,
    )
    result_queue: queue.Queue[OperationOutcome] = queue.Queue(maxsize=config.iterations)

    context = RunContext(operation=config.operation, payload=payload, debug=config.debug)
    backend.prepare(context)
    # The run clock starts after setup so prepare() is not timed.
    context = context.restarted()
    print("Starting...", context.started_wall)

    pool = WorkerPool(backend, context, config.threads)
    pool.start(task_queue, result_queue)
    results = ResultCollector(config.iterations).collect(result_queue, context)
    pool.join()

    print("Ending...", datetime.now())
    print("Duration: ", format_duration(results.duration))

    stats = aggregate(results)
    if config.csv:
        write_csv(results.outcomes)
    print_report(config.label, stats)

    if config.cleanup:
        cleanup(config, backend)

    return BenchmarkReport(config=config, results=results, stats=stats)


def cleanup(config: BenchmarkConfig, backend: StorageBackend) -> int:
    """Delete every pool file. Returns count of deleted files."""
    print(f"\nCleaning up test files under: {backend.path_prefix}")
    deleted = sum(1 for path in pool_paths(backend.path_prefix, config.files) if backend.delete(path))
    print(f"Deleted {deleted} test files")
    return deleted
