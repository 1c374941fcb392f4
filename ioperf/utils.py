"""Utility functions for benchmarking."""

from datetime import timedelta


def format_size(size_bytes: int) -> str:
    """Format size in human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f}KiB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.0f}MiB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f}GiB"


def format_duration(seconds: float) -> str:
    """Format a wall-clock duration, e.g. 0:00:01.234567."""
    return str(timedelta(seconds=seconds))
