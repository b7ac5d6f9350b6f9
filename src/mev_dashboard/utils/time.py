"""
Time utilities.

Millisecond timestamps stamp domain objects (quotes, opportunities,
outcomes); microsecond timestamps are used for latency measurement.
"""

import time
from datetime import UTC, datetime


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def get_timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Returns:
        Current Unix timestamp in milliseconds.
    """
    return time.time_ns() // 1_000_000


def age_ms(timestamp_ms: int, now_ms: int | None = None) -> int:
    """
    Age of a millisecond timestamp.

    Args:
        timestamp_ms: Timestamp to measure.
        now_ms: Reference time (defaults to now).

    Returns:
        Elapsed milliseconds, never negative.
    """
    now = get_timestamp_ms() if now_ms is None else now_ms
    return max(0, now - timestamp_ms)


def format_timestamp_ms(timestamp_ms: int, include_date: bool = False) -> str:
    """
    Format a millisecond timestamp for display.

    Args:
        timestamp_ms: Timestamp in milliseconds.
        include_date: Whether to include the date portion.

    Returns:
        Formatted timestamp string.

    Example:
        >>> format_timestamp_ms(1704067200123)
        '00:00:00.123'
    """
    dt = datetime.fromtimestamp(timestamp_ms // 1000, tz=UTC)
    millis = timestamp_ms % 1000

    if include_date:
        return f"{dt.strftime('%Y-%m-%d %H:%M:%S')}.{millis:03d}"
    return f"{dt.strftime('%H:%M:%S')}.{millis:03d}"


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     do_something()
        >>> print(f"Latency: {timer.latency_us}μs")
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_timestamp_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_timestamp_us()
        self.latency_us = self.end_us - self.start_us

    @property
    def latency_ms(self) -> int:
        """Measured latency in whole milliseconds."""
        return self.latency_us // 1000


def format_duration_us(duration_us: int) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if duration_us < 1000:
        return f"{duration_us}μs"
    elif duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"
