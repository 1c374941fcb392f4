"""Configuration management using TOML and command-line overrides."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

try:
    import tomllib
except ImportError:
    import tomli as tomllib

DEFAULT_SETTINGS_PATH = "ioperf.toml"
DEFAULT_REGION = "us-west-2"


class ConfigError(ValueError):
    """Invalid configuration. Raised before any worker is started."""

    pass


@dataclass(frozen=True)
class BenchmarkConfig:
    """Parameters common to every backend."""

    file_type: Literal["disk", "s3"]
    operation: Literal["read", "write"] = "read"
    iterations: int = 1
    threads: int = 1
    files: int = 1
    size_mib: int = 1
    path: str = "./ioperf-data"
    debug: bool = False
    csv: bool = False
    dry_run: bool = False
    cleanup: bool = False

    @property
    def label(self) -> str:
        return f"{self.file_type}:{self.operation}"

    def validate(self) -> None:
        """Check counts and operation kind."""
        if self.operation not in ("read", "write"):
            raise ConfigError(f"Unknown operation '{self.operation}': expected read or write")
        for name in ("iterations", "threads", "files"):
            value = getattr(self, name)
            if value < 1:
                raise ConfigError(f"--{name} must be at least 1, got {value}")
        if self.size_mib < 0:
            raise ConfigError(f"--size must not be negative, got {self.size_mib}")


@dataclass(frozen=True)
class DiskConfig:
    """Local disk benchmark configuration."""

    common: BenchmarkConfig
    direct: bool = False
    fsync: bool = False

    def validate(self) -> None:
        self.common.validate()


@dataclass(frozen=True)
class S3Credentials:
    """Connection settings for an S3-compatible endpoint."""

    access_key: str | None = None
    secret_key: str | None = None
    region: str = DEFAULT_REGION
    endpoint: str | None = None
    timeout_seconds: int = 300

    @property
    def endpoint_url(self) -> str:
        """Configured endpoint, or the AWS regional endpoint."""
        if self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://s3.{self.region}.amazonaws.com"

    def validate(self) -> None:
        if not self.access_key or not self.secret_key:
            raise ConfigError(
                "S3 credentials missing: set access_key and secret_key in the [s3] "
                "section of the settings file or AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY"
            )


def parse_s3_url(url: str) -> tuple[str, str]:
    """Split s3://bucket/path into (bucket, path prefix)."""
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigError(f"Unable to parse S3 URL: err={e}, url={url}") from e
    prefix = parsed.path.strip("/")
    if parsed.scheme != "s3" or not parsed.netloc or not prefix:
        raise ConfigError(f"URL must have format s3://bucket/path, got '{url}'")
    return parsed.netloc, prefix


@dataclass(frozen=True)
class S3Config:
    """Object-store benchmark configuration."""

    common: BenchmarkConfig
    s3_url: str
    credentials: S3Credentials = field(default_factory=S3Credentials)

    def resolve(self) -> tuple[str, str]:
        """Return (bucket, key prefix) parsed from the S3 URL."""
        return parse_s3_url(self.s3_url)

    def validate(self) -> None:
        self.common.validate()
        self.resolve()
        self.credentials.validate()


@dataclass
class Settings:
    """Values loaded from the optional TOML settings file."""

    benchmark: dict = field(default_factory=dict)
    credentials: S3Credentials = field(default_factory=S3Credentials)

    @classmethod
    def from_file(cls, config_path: str | Path = DEFAULT_SETTINGS_PATH) -> "Settings":
        """Load settings from TOML. A missing file yields defaults."""
        config_path = Path(config_path)

        data = {}
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(f"Error loading settings file {config_path}: {e}") from e

        s3_data = data.get("s3", {})
        credentials = S3Credentials(
            access_key=s3_data.get("access_key") or os.environ.get("AWS_ACCESS_KEY_ID"),
            secret_key=s3_data.get("secret_key") or os.environ.get("AWS_SECRET_ACCESS_KEY"),
            region=s3_data.get("region") or os.environ.get("AWS_REGION", DEFAULT_REGION),
            endpoint=s3_data.get("endpoint") or os.environ.get("S3_ENDPOINT"),
            timeout_seconds=s3_data.get("timeout_seconds", 300),
        )

        return cls(benchmark=data.get("benchmark", {}), credentials=credentials)

    def default(self, key: str, fallback):
        """Benchmark default from the file, else fallback."""
        return self.benchmark.get(key, fallback)
