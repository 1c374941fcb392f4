"""Benchmark engine: tasks, workers, statistics and orchestration."""

from ioperf.benchmarks.base import OperationOutcome, RunContext, StorageBackend
from ioperf.benchmarks.runner import BenchmarkReport, run_benchmark
from ioperf.benchmarks.stats import ResultSet, SummaryStats, aggregate

__all__ = [
    "BenchmarkReport",
    "OperationOutcome",
    "ResultSet",
    "RunContext",
    "StorageBackend",
    "SummaryStats",
    "aggregate",
    "run_benchmark",
]
