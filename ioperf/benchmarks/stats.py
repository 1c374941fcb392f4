"""Result collection and statistical aggregation."""

import csv
import queue
import sys
import time
from dataclasses import dataclass, field
from typing import Iterable, TextIO

from ioperf.benchmarks.base import OperationOutcome, RunContext
from ioperf.benchmarks.tasks import MIB

PERCENTILES = (0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 95, 99)

CSV_HEADER = [
    "CSV1",
    "Operation",
    "WorkerId",
    "Path",
    "Succeeded",
    "Bytes",
    "StartTimeMs",
    "Duration",
    "FirstBlockArrivalMs",
]


@dataclass
class ResultSet:
    """Outcomes of one run in arrival order."""

    outcomes: list[OperationOutcome]
    started_at: float
    finished_at: float

    @property
    def duration(self) -> float:
        """Wall-clock seconds from first dispatch to last receipt."""
        return self.finished_at - self.started_at

    def __len__(self) -> int:
        return len(self.outcomes)


@dataclass
class SummaryStats:
    """Aggregate statistics over a completed ResultSet."""

    files: int
    total_bytes: int
    succeeded: int
    failed: int
    min_ms: float
    avg_ms: float
    max_ms: float
    duration: float
    bytes_per_sec: float
    mib_per_sec: float
    percentiles: list[tuple[int, float]] = field(default_factory=list)


class ResultCollector:
    """Fan-in barrier: blocks until exactly `iterations` outcomes arrive."""

    def __init__(self, iterations: int):
        self.iterations = iterations

    def collect(
        self, result_queue: "queue.Queue[OperationOutcome]", context: RunContext
    ) -> ResultSet:
        """Drain the result queue, printing progress as outcomes arrive."""
        outcomes = []
        for _ in range(self.iterations):
            outcome = result_queue.get()
            outcomes.append(outcome)
            if context.debug:
                print(outcome)
            else:
                print(".", end="", flush=True)
        finished_at = time.perf_counter()
        if not context.debug:
            print()
        return ResultSet(outcomes, context.started_at, finished_at)


def percentile_index(p: int, n: int) -> int:
    """Index of percentile p in a sorted list of n items.

    Integer division, clamped to the valid range. For n < 100 neighbouring
    percentiles can map to the same index; that approximation is accepted.
    """
    return max(0, min(p * n // 100, n - 1))


def aggregate(result_set: ResultSet) -> SummaryStats:
    """Compute summary statistics. Failed outcomes count like any other."""
    outcomes = result_set.outcomes
    if not outcomes:
        raise ValueError("Cannot aggregate an empty result set")

    total_bytes = 0
    succeeded = failed = 0
    min_ms = float("inf")
    max_ms = 0.0
    sum_ms = 0.0
    for outcome in outcomes:
        total_bytes += outcome.bytes
        if outcome.succeeded:
            succeeded += 1
        else:
            failed += 1
        min_ms = min(min_ms, outcome.duration_ms)
        max_ms = max(max_ms, outcome.duration_ms)
        sum_ms += outcome.duration_ms

    duration = result_set.duration
    bytes_per_sec = total_bytes / duration if duration > 0 else 0.0

    by_duration = sorted(outcomes, key=lambda o: o.duration_ms)
    n = len(by_duration)
    percentiles = [
        (p, by_duration[percentile_index(p, n)].duration_ms) for p in PERCENTILES
    ]

    return SummaryStats(
        files=n,
        total_bytes=total_bytes,
        succeeded=succeeded,
        failed=failed,
        min_ms=min_ms,
        avg_ms=sum_ms / n,
        max_ms=max_ms,
        duration=duration,
        bytes_per_sec=bytes_per_sec,
        mib_per_sec=bytes_per_sec / MIB,
        percentiles=percentiles,
    )


def csv_rows(outcomes: Iterable[OperationOutcome]) -> list[list[str]]:
    """Header plus one fixed-column row per outcome."""
    rows = [list(CSV_HEADER)]
    for o in outcomes:
        rows.append(
            [
                "CSV1",
                o.operation,
                str(o.worker_id),
                o.path,
                "true" if o.succeeded else "false",
                str(o.bytes),
                f"{o.start_time_ms:.4f}",
                f"{o.duration_ms:.4f}",
                f"{o.first_block_arrival_ms:.4f}",
            ]
        )
    return rows


def write_csv(outcomes: Iterable[OperationOutcome], out: TextIO | None = None) -> None:
    """Write outcome rows as CSV to out (stdout by default)."""
    writer = csv.writer(out or sys.stdout, lineterminator="\n")
    writer.writerows(csv_rows(outcomes))


def print_report(label: str, stats: SummaryStats) -> None:
    """Print the statistics and percentile blocks."""
    print(f"    Operation:   {label}")
    print("STATISTICS")
    print(f"  Throughput: {stats.mib_per_sec:.4f} MiB/sec")
    print(f"  Files:      {stats.files}")
    print(f"  Bytes:      {stats.total_bytes}")
    print(f"  Succeeded:  {stats.succeeded}")
    print(f"  Failed:     {stats.failed}")
    print("  I/O Duration Statistics")
    print(f"    Min:        {stats.min_ms:.4f} msec")
    print(f"    Avg:        {stats.avg_ms:.4f} msec")
    print(f"    Max:        {stats.max_ms:.4f} msec")
    print("  I/O Duration Percentiles")
    for p, duration_ms in stats.percentiles:
        print(f"    P{p}: {duration_ms:.4f}")
