"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from ioperf.benchmarks.base import OperationOutcome

ENV_VARS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_REGION", "S3_ENDPOINT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host credentials out of settings resolution."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_outcome():
    def _make(duration_ms: float, nbytes: int = 0, succeeded: bool = True, **kwargs) -> OperationOutcome:
        return OperationOutcome(
            operation=kwargs.pop("operation", "disk-read"),
            path=kwargs.pop("path", "data/ioperf-file-0.dat"),
            worker_id=kwargs.pop("worker_id", 0),
            succeeded=succeeded,
            bytes=nbytes,
            duration_ms=duration_ms,
            **kwargs,
        )

    return _make
