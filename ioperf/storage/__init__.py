"""Storage backend implementations."""

from ioperf.benchmarks.base import StorageBackend
from ioperf.storage.local import LocalStorage
from ioperf.storage.s3 import S3Storage

__all__ = ["StorageBackend", "LocalStorage", "S3Storage"]
