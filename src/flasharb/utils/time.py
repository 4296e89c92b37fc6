"""
Time utilities.

Opportunities and executions are stamped in milliseconds, matching
what the dashboard client expects.
"""

import time
from datetime import UTC, datetime


def get_timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Returns:
        Current Unix timestamp in milliseconds.
    """
    return time.time_ns() // 1_000_000


def format_timestamp_ms(timestamp_ms: int, include_date: bool = False) -> str:
    """
    Format millisecond timestamp for logs and API payloads.

    Example:
        >>> format_timestamp_ms(1704067200123)
        '00:00:00'
        >>> format_timestamp_ms(1704067200123, include_date=True)
        '2024-01-01 00:00:00'
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    if include_date:
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    return dt.strftime("%H:%M:%S")


def format_age(timestamp_ms: int, now_ms: int | None = None) -> str:
    """
    Human-readable age of a timestamp.

    Examples:
        >>> format_age(0, now_ms=45_000)
        '45s ago'
        >>> format_age(0, now_ms=125_000)
        '2m ago'
        >>> format_age(0, now_ms=7_200_000)
        '2h ago'
    """
    now = now_ms if now_ms is not None else get_timestamp_ms()
    seconds = max(0, (now - timestamp_ms) // 1000)

    if seconds < 60:
        return f"{seconds}s ago"
    elif seconds < 3600:
        return f"{seconds // 60}m ago"
    else:
        return f"{seconds // 3600}h ago"
