"""Command-line interface for benchmarking."""

import argparse
import sys

from ioperf.benchmarks import run_benchmark
from ioperf.config import (
    DEFAULT_SETTINGS_PATH,
    BenchmarkConfig,
    ConfigError,
    DiskConfig,
    S3Config,
    Settings,
    parse_s3_url,
)
from ioperf.storage import LocalStorage, S3Storage

DEFAULT_DIR_PATH = "./ioperf-data"
DEFAULT_PREFIX = "ioperf-data"


def _pick(value, settings: Settings, key: str, fallback):
    """CLI value if given, else settings file value, else fallback."""
    return value if value is not None else settings.default(key, fallback)


def build_common(args, settings: Settings, file_type: str, path: str) -> BenchmarkConfig:
    """Build the backend-independent part of the configuration."""
    return BenchmarkConfig(
        file_type=file_type,
        operation=_pick(args.operation, settings, "operation", "read"),
        iterations=_pick(args.iterations, settings, "iterations", 1),
        threads=_pick(args.threads, settings, "threads", 1),
        files=_pick(args.files, settings, "files", 1),
        size_mib=_pick(args.size, settings, "size_mib", 1),
        path=path,
        debug=args.debug,
        csv=args.csv,
        dry_run=args.dry_run,
        cleanup=args.cleanup,
    )


def cmd_disk(args, settings: Settings) -> None:
    """Run a local disk benchmark."""
    dir_path = _pick(args.dir_path, settings, "dir_path", DEFAULT_DIR_PATH)
    config = DiskConfig(
        common=build_common(args, settings, "disk", dir_path),
        direct=args.direct,
        fsync=args.fsync,
    )
    config.validate()

    storage = LocalStorage(base_path=dir_path, fsync=config.fsync, direct=config.direct)
    run_benchmark(config.common, storage)


def resolve_s3_url(args, settings: Settings) -> str:
    """Pick the S3 URL from --s3-url, --bucket/--prefix or the settings file."""
    if args.s3_url:
        return args.s3_url
    if args.bucket:
        prefix = _pick(args.prefix, settings, "prefix", DEFAULT_PREFIX)
        return f"s3://{args.bucket}/{prefix.strip('/')}"
    s3_url = settings.default("s3_url", None)
    if not s3_url:
        raise ConfigError("No S3 location given: use --s3-url or --bucket/--prefix")
    return s3_url


def cmd_s3(args, settings: Settings) -> None:
    """Run an S3 benchmark."""
    s3_url = resolve_s3_url(args, settings)
    bucket, prefix = parse_s3_url(s3_url)
    config = S3Config(
        common=build_common(args, settings, "s3", prefix),
        s3_url=s3_url,
        credentials=settings.credentials,
    )
    config.validate()

    storage = S3Storage(
        bucket=bucket,
        prefix=prefix,
        credentials=config.credentials,
        s3_url=s3_url,
    )
    run_benchmark(config.common, storage)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every backend subcommand."""
    parser.add_argument(
        "--operation", choices=["read", "write"], help="I/O to perform (default: read)"
    )
    parser.add_argument("--iterations", type=int, help="Number of operations to perform")
    parser.add_argument("--threads", type=int, help="Number of threads to run")
    parser.add_argument("--files", type=int, help="Number of files to use")
    parser.add_argument("--size", type=int, help="Size of files in MiB (write)")
    parser.add_argument("--debug", action="store_true", help="Print debug info")
    parser.add_argument("--csv", action="store_true", help="Generate CSV data")
    parser.add_argument("--dry-run", action="store_true", help="Parse arguments and quit")
    parser.add_argument(
        "--cleanup", action="store_true", help="Delete test files after the run"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ioperf",
        description="ioperf - benchmark I/O throughput and latency of disk and S3 storage",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_SETTINGS_PATH,
        help=f"TOML settings file (default: {DEFAULT_SETTINGS_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Disk benchmark
    disk_parser = subparsers.add_parser("disk", help="Run disk I/O test")
    add_common_arguments(disk_parser)
    disk_parser.add_argument("--dir-path", help="Directory path for test files")
    disk_parser.add_argument(
        "--fsync", "--sync", action="store_true", help="Fsync file at close (write)"
    )
    disk_parser.add_argument("--direct", action="store_true", help="Use direct I/O")
    disk_parser.set_defaults(func=cmd_disk)

    # S3 benchmark
    s3_parser = subparsers.add_parser("s3", help="Run S3 I/O test")
    add_common_arguments(s3_parser)
    s3_parser.add_argument("--s3-url", help="S3 URL prefix for test files (s3://bucket/path)")
    s3_parser.add_argument("--bucket", help="Bucket for test files")
    s3_parser.add_argument("--prefix", help="Key prefix for test files (with --bucket)")
    s3_parser.set_defaults(func=cmd_s3)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = Settings.from_file(args.config)
        args.func(args, settings)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
