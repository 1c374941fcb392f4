"""End-to-end benchmark runs against the local filesystem."""

from __future__ import annotations

from collections import Counter

import pytest

from ioperf.benchmarks.runner import run_benchmark
from ioperf.benchmarks.tasks import MIB
from ioperf.config import BenchmarkConfig
from ioperf.storage.local import LocalStorage


def disk_config(tmp_path, **overrides) -> BenchmarkConfig:
    values = {"file_type": "disk", "path": str(tmp_path / "data")}
    values.update(overrides)
    return BenchmarkConfig(**values)


def test_write_run(tmp_path, capsys) -> None:
    config = disk_config(tmp_path, operation="write", iterations=4, threads=2, files=2, size_mib=1)

    report = run_benchmark(config, LocalStorage(config.path))

    outcomes = report.results.outcomes
    assert len(outcomes) == 4
    paths = Counter(o.path for o in outcomes)
    assert len(paths) == 2
    assert set(paths.values()) == {2}
    assert all(o.succeeded for o in outcomes)
    assert report.stats.total_bytes == 4 * MIB
    assert report.stats.succeeded == 4
    assert report.stats.failed == 0
    assert sorted(p.name for p in (tmp_path / "data").iterdir()) == [
        "ioperf-file-0.dat",
        "ioperf-file-1.dat",
    ]

    out = capsys.readouterr().out
    assert "TEST PARAMETERS" in out
    assert "Operation:   disk:write" in out
    assert "STATISTICS" in out
    assert "Succeeded:  4" in out
    assert "P99:" in out


def test_read_run_against_existing_file(tmp_path) -> None:
    data = tmp_path / "data"
    data.mkdir()
    (data / "ioperf-file-0.dat").write_bytes(b"q" * 5000)
    config = disk_config(tmp_path, operation="read", iterations=3, threads=1, files=1)

    report = run_benchmark(config, LocalStorage(config.path))

    assert len(report.results) == 3
    assert all(o.succeeded and o.bytes == 5000 for o in report.results.outcomes)
    assert all(o.worker_id == 0 for o in report.results.outcomes)


def test_write_then_read_round_trip(tmp_path) -> None:
    write = disk_config(tmp_path, operation="write", iterations=2, threads=2, files=2, size_mib=2)
    run_benchmark(write, LocalStorage(write.path))

    read = disk_config(tmp_path, operation="read", iterations=2, threads=2, files=2)
    report = run_benchmark(read, LocalStorage(read.path))

    assert all(o.bytes == 2 * MIB for o in report.results.outcomes)


def test_read_run_with_missing_files(tmp_path, capsys) -> None:
    config = disk_config(tmp_path, operation="read", iterations=5, threads=2, files=3)

    report = run_benchmark(config, LocalStorage(config.path))

    assert len(report.results) == 5
    assert report.stats.failed == 5
    assert report.stats.succeeded == 0
    assert all(o.bytes == 0 for o in report.results.outcomes)
    assert "Failed:     5" in capsys.readouterr().out


def test_throughput_and_percentiles(tmp_path) -> None:
    config = disk_config(tmp_path, operation="write", iterations=10, threads=3, files=4, size_mib=1)

    report = run_benchmark(config, LocalStorage(config.path))

    stats = report.stats
    expected = sum(o.bytes for o in report.results.outcomes) / report.results.duration / MIB
    assert stats.mib_per_sec == pytest.approx(expected)
    values = [v for _, v in stats.percentiles]
    assert values == sorted(values)
    assert values[0] == stats.min_ms


def test_csv_output(tmp_path, capsys) -> None:
    config = disk_config(tmp_path, operation="write", iterations=6, threads=2, files=2, size_mib=0, csv=True)

    run_benchmark(config, LocalStorage(config.path))

    csv_lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("CSV1,")]
    assert len(csv_lines) == 7
    assert csv_lines[0].startswith("CSV1,Operation,WorkerId")


def test_dry_run_does_nothing(tmp_path, capsys) -> None:
    config = disk_config(tmp_path, operation="write", iterations=4, files=2, dry_run=True)

    report = run_benchmark(config, LocalStorage(config.path))

    assert report is None
    assert not (tmp_path / "data").exists()
    out = capsys.readouterr().out
    assert "TEST PARAMETERS" in out
    assert "Starting..." not in out


def test_cleanup_removes_pool_files(tmp_path) -> None:
    config = disk_config(tmp_path, operation="write", iterations=3, files=3, size_mib=0, cleanup=True)

    run_benchmark(config, LocalStorage(config.path))

    assert list((tmp_path / "data").iterdir()) == []
