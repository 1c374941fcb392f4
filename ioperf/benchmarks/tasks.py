"""Task generation: map iterations onto a fixed pool of target files."""

from dataclasses import dataclass
from typing import Iterator

TOOL_NAME = "ioperf"
MIB = 1024 * 1024


@dataclass(frozen=True)
class Task:
    """Assignment of one target path to one iteration."""

    iteration: int
    file_index: int
    path: str


def task_path(prefix: str, index: int) -> str:
    """Generate the path of pool file `index` under prefix."""
    prefix = prefix.rstrip("/")
    name = f"{TOOL_NAME}-file-{index}.dat"
    return f"{prefix}/{name}" if prefix else name


def generate_tasks(prefix: str, iterations: int, files: int) -> Iterator[Task]:
    """Yield exactly `iterations` tasks, cycling over `files` pool files."""
    for i in range(iterations):
        index = i % files
        yield Task(iteration=i, file_index=index, path=task_path(prefix, index))


def pool_paths(prefix: str, files: int) -> list[str]:
    """All distinct paths a run with `files` pool files can touch."""
    return [task_path(prefix, index) for index in range(files)]


def build_payload(size_mib: int) -> bytes:
    """Build the shared write buffer: size_mib MiB with byte[i] = i % 256."""
    byte_count = size_mib * MIB
    pattern = bytes(range(256))
    repeats = (byte_count + len(pattern) - 1) // len(pattern)
    return (pattern * repeats)[:byte_count]
