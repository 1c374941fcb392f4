"""ioperf - throughput and latency benchmarks for disk and S3 storage."""

__version__ = "0.3.0"
