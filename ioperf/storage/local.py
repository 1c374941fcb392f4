"""Local filesystem storage backend."""

import mmap
import os
import sys
import time
from pathlib import Path

from ioperf.benchmarks.base import OperationOutcome, RunContext
from ioperf.config import ConfigError

CHUNK_SIZE = 1024
# O_DIRECT needs buffers, offsets and lengths aligned to the logical block size.
DIRECT_CHUNK_SIZE = 4096
O_DIRECT = getattr(os, "O_DIRECT", 0)


class LocalStorage:
    """Storage backend using the local filesystem."""

    kind = "disk"

    def __init__(self, base_path: str, fsync: bool = False, direct: bool = False):
        self.base_path = Path(base_path)
        self.fsync = fsync
        self.direct = direct
        self.name = f"local filesystem ({self.base_path.absolute()})"
        self._aligned_payload: mmap.mmap | None = None

    @property
    def path_prefix(self) -> str:
        return str(self.base_path)

    @property
    def chunk_size(self) -> int:
        return DIRECT_CHUNK_SIZE if self._use_direct else CHUNK_SIZE

    @property
    def _use_direct(self) -> bool:
        return self.direct and O_DIRECT != 0

    def describe(self) -> None:
        print(f"    Direct:      {self.direct}")
        print(f"    Fsync:       {self.fsync}")
        if self.direct and not O_DIRECT:
            print("    [WARN] Direct I/O is not supported on this platform; using buffered I/O")

    def prepare(self, context: RunContext) -> None:
        """Create the target directory and, for direct I/O, an aligned payload copy."""
        if context.operation != "write":
            return
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create directory {self.base_path}: {e}") from e

        if self._use_direct and context.payload:
            # Anonymous maps are page aligned, which satisfies O_DIRECT.
            self._aligned_payload = mmap.mmap(-1, len(context.payload))
            self._aligned_payload.write(context.payload)

    def _opener(self, path: str, flags: int) -> int:
        if self._use_direct:
            flags |= O_DIRECT
        return os.open(path, flags, 0o644)

    def write(self, path: str, context: RunContext) -> OperationOutcome:
        """Write the shared payload to path in fixed-size chunks."""
        payload = self._aligned_payload if self._aligned_payload is not None else context.payload
        view = memoryview(payload)
        chunk = self.chunk_size
        written = 0

        start = time.perf_counter()
        start_ms = context.millis_since_start(start)
        try:
            with open(path, "wb", buffering=0, opener=self._opener) as f:
                for offset in range(0, len(view), chunk):
                    block = view[offset:offset + chunk]
                    # Raw writes may be short; finish the block before moving on.
                    while block:
                        count = f.write(block)
                        written += count
                        block = block[count:]
                if self.fsync:
                    os.fsync(f.fileno())
        except OSError as e:
            print(f"\n  [ERROR] disk-write {path}: {e}", file=sys.stderr)
            return OperationOutcome(
                operation="disk-write",
                path=path,
                bytes=written,
                start_time_ms=start_ms,
                duration_ms=(time.perf_counter() - start) * 1000,
            )

        return OperationOutcome(
            operation="disk-write",
            path=path,
            succeeded=True,
            bytes=written,
            start_time_ms=start_ms,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    def read(self, path: str, context: RunContext) -> OperationOutcome:
        """Read path to exhaustion, timing the first chunk's arrival."""
        if self._use_direct:
            buffer = mmap.mmap(-1, DIRECT_CHUNK_SIZE)
        else:
            buffer = bytearray(CHUNK_SIZE)
        read = 0
        first_block_ms = 0.0
        succeeded = False

        start = time.perf_counter()
        start_ms = context.millis_since_start(start)
        try:
            with open(path, "rb", buffering=0, opener=self._opener) as f:
                while True:
                    count = f.readinto(buffer)
                    if not count:
                        break
                    read += count
                    if first_block_ms <= 0.0:
                        first_block_ms = (time.perf_counter() - start) * 1000
            succeeded = True
        except OSError as e:
            print(f"\n  [ERROR] disk-read {path}: {e}", file=sys.stderr)
        end = time.perf_counter()

        return OperationOutcome(
            operation="disk-read",
            path=path,
            succeeded=succeeded,
            bytes=read,
            start_time_ms=start_ms,
            duration_ms=(end - start) * 1000,
            first_block_arrival_ms=first_block_ms,
        )

    def delete(self, path: str) -> bool:
        """Delete a file. Returns True if successful or file didn't exist."""
        try:
            Path(path).unlink(missing_ok=True)
            return True
        except OSError:
            return False
