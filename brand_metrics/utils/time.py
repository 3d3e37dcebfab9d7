"""
UTC timestamp utilities for Brand Metrics.

All timestamps MUST be in UTC with explicit timezone markers. Date windows
and stored tested_at values are compared as timezone-aware datetimes only.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- format_timestamp(): Format an aware datetime as ISO 8601 with 'Z'
- parse_timestamp(): Parse ISO 8601 string to datetime

Examples:
    >>> from brand_metrics.utils.time import utc_now, utc_timestamp
    >>> now = utc_now()
    >>> now.tzinfo
    datetime.timezone.utc
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return the current time as an ISO 8601 string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ
    """
    return format_timestamp(utc_now())


def format_timestamp(dt: datetime) -> str:
    """
    Format a timezone-aware datetime as YYYY-MM-DDTHH:MM:SSZ in UTC.

    Raises:
        ValueError: If dt is naive (missing timezone)

    Examples:
        >>> format_timestamp(datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC))
        '2025-11-02T08:30:45Z'
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use timezone.utc). "
            "Got naive datetime. Use utc_now() or ensure dt has tzinfo set."
        )
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse ISO 8601 timestamp string to timezone-aware UTC datetime.

    Accepts a 'Z' suffix or an explicit UTC offset ('+02:00'). Values with
    an offset are converted to UTC. A bare date ('2025-11-02') is read as
    midnight UTC.

    Raises:
        ValueError: If the timestamp has no timezone or an invalid format

    Examples:
        >>> parse_timestamp('2025-11-02T08:30:45Z').hour
        8
        >>> parse_timestamp('2025-11-02T10:30:45+02:00').hour
        8
        >>> parse_timestamp('2025-11-02T08:30:45')
        Traceback (most recent call last):
        ...
        ValueError: Timestamp must include a timezone (use 'Z' for UTC): 2025-11-02T08:30:45
    """
    text = timestamp_str.strip()

    if len(text) == 10:
        text = f"{text}T00:00:00Z"

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp format: {timestamp_str}") from e

    if parsed.tzinfo is None:
        raise ValueError(
            f"Timestamp must include a timezone (use 'Z' for UTC): {timestamp_str}"
        )

    return parsed.astimezone(UTC)
