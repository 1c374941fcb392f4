"""Core benchmark types shared by workers, backends and the aggregator."""

import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class OperationOutcome:
    """Timed result of one I/O attempt."""

    operation: str
    path: str
    worker_id: int = -1
    succeeded: bool = False
    bytes: int = 0
    start_time_ms: float = 0.0
    duration_ms: float = 0.0
    first_block_arrival_ms: float = 0.0

    def with_worker(self, worker_id: int) -> "OperationOutcome":
        """Return a copy stamped with the emitting worker's id."""
        return replace(self, worker_id=worker_id)

    def __str__(self) -> str:
        status = "OK" if self.succeeded else "FAILED"
        return (
            f"{self.operation:10s} | "
            f"worker {self.worker_id:3d} | "
            f"{status:6s} | "
            f"{self.bytes:>12d} bytes | "
            f"start {self.start_time_ms:10.4f} ms | "
            f"duration {self.duration_ms:10.4f} ms | "
            f"first block {self.first_block_arrival_ms:8.4f} ms | "
            f"{self.path}"
        )


@dataclass(frozen=True)
class RunContext:
    """State for one benchmark invocation.

    Written once before any worker starts and read-only afterwards. The
    payload is shared by reference across every worker.
    """

    operation: str
    payload: bytes = b""
    debug: bool = False
    started_at: float = field(default_factory=time.perf_counter)
    started_wall: datetime = field(default_factory=datetime.now)

    def restarted(self) -> "RunContext":
        """Copy whose run clock starts now."""
        return replace(self, started_at=time.perf_counter(), started_wall=datetime.now())

    def millis_since_start(self, now: float) -> float:
        """Milliseconds between run start and a perf_counter() reading."""
        return (now - self.started_at) * 1000


class StorageBackend(Protocol):
    """Capability contract for a storage medium under test."""

    name: str
    kind: str

    @property
    def path_prefix(self) -> str:
        """Directory or key prefix that task paths are generated under."""
        ...

    def describe(self) -> None:
        """Print backend-specific test parameters."""
        ...

    def prepare(self, context: RunContext) -> None:
        """One-time setup before workers start. Raises ConfigError on failure."""
        ...

    def write(self, path: str, context: RunContext) -> OperationOutcome:
        """Write the shared payload to path."""
        ...

    def read(self, path: str, context: RunContext) -> OperationOutcome:
        """Read path until exhaustion."""
        ...

    def delete(self, path: str) -> bool:
        """Delete path. Returns True if it is gone afterwards."""
        ...
