"""Utility functions for kudump.

This module provides helper functions for:
- Time duration parsing (e.g., '10s', '5m', '1h' to seconds)
- Timestamp formatting for filenames and file headers
- Log filename and header construction
"""

import re
from datetime import datetime


# Time unit multipliers (in seconds)
TIME_UNITS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}

# Duration pattern: number followed by unit (s, m, h, d)
DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$", re.IGNORECASE)

# Second granularity, local time
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
HEADER_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Sidecar injected by Istio; always keeps its name in the filename
ISTIO_PROXY_CONTAINER = "istio-proxy"

LOG_FILE_SUFFIX = ".log"

# Smallest sinceSeconds value the API accepts
MIN_SINCE_SECONDS = 1


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(duration_str: str) -> int:
    """Parse a human-readable duration string into seconds.

    Supports formats like '10s', '5m', '1h', '2d' (case-insensitive).

    Args:
        duration_str: The duration string to parse (e.g., '10m', '1h').

    Returns:
        The duration in seconds as an integer.

    Raises:
        DurationParseError: If the duration string is invalid.

    Examples:
        >>> parse_duration('30s')
        30
        >>> parse_duration('5m')
        300
        >>> parse_duration('2d')
        172800
    """
    if not duration_str:
        raise DurationParseError("Duration string cannot be empty")

    duration_str = duration_str.strip().lower()
    match = DURATION_PATTERN.match(duration_str)

    if not match:
        raise DurationParseError(
            f"Invalid duration format: '{duration_str}'. "
            f"Expected format: <number><unit> where unit is s, m, h, or d. "
            f"Examples: '30s', '5m', '1h', '2d'"
        )

    value = int(match.group(1))
    unit = match.group(2)

    if value <= 0:
        raise DurationParseError(f"Duration must be positive, got: {value}")

    return value * TIME_UNITS[unit]


def seconds_since(since: datetime, now: datetime) -> int:
    """Return the whole seconds elapsed between ``since`` and ``now``.

    The API rejects windows below one second, so anything shorter,
    including times in the future, clamps to one.

    Examples:
        >>> seconds_since(datetime(2024, 1, 15, 10, 0, 0), datetime(2024, 1, 15, 10, 5, 30))
        330
    """
    return max(MIN_SINCE_SECONDS, int((now - since).total_seconds()))


def format_file_timestamp(moment: datetime) -> str:
    """Format a collection time for use in a filename.

    Examples:
        >>> format_file_timestamp(datetime(2024, 1, 15, 10, 30, 5))
        '20240115_103005'
    """
    return moment.strftime(FILENAME_TIMESTAMP_FORMAT)


def omits_container_name(container_name: str, container_count: int) -> bool:
    """Check whether a log filename can leave out the container name.

    Only pods with exactly one container qualify, and only when the
    container name has no '-' separated segments and is not the Istio
    sidecar.

    Args:
        container_name: The name of the container.
        container_count: Number of containers declared by the pod.

    Returns:
        True if the shorter ``{pod}_{timestamp}`` form should be used.

    Examples:
        >>> omits_container_name('web', 1)
        True
        >>> omits_container_name('istio-proxy', 1)
        False
        >>> omits_container_name('api', 2)
        False
    """
    if container_count != 1:
        return False
    if container_name == ISTIO_PROXY_CONTAINER:
        return False
    return len(container_name.split("-")) == 1


def build_log_filename(
    pod_name: str,
    container_name: str,
    container_count: int,
    moment: datetime,
) -> str:
    """Build the log filename for a container.

    Args:
        pod_name: The name of the pod.
        container_name: The name of the container.
        container_count: Number of containers declared by the pod.
        moment: The collection time.

    Returns:
        The filename, e.g. 'web_20240115_103005.log' or
        'web_istio-proxy_20240115_103005.log'.

    Examples:
        >>> build_log_filename('api', 'istio-proxy', 2, datetime(2024, 1, 15, 10, 30, 5))
        'api_istio-proxy_20240115_103005.log'
    """
    timestamp = format_file_timestamp(moment)

    if omits_container_name(container_name, container_count):
        return f"{pod_name}_{timestamp}{LOG_FILE_SUFFIX}"

    return f"{pod_name}_{container_name}_{timestamp}{LOG_FILE_SUFFIX}"


def format_log_header(pod_name: str, container_name: str, moment: datetime) -> bytes:
    """Build the header written at the top of every log file.

    Examples:
        >>> format_log_header('web', 'nginx', datetime(2024, 1, 15, 10, 30, 5))
        b'=== Pod: web | Container: nginx | Collected: 2024-01-15 10:30:05 ===\\n\\n'
    """
    collected = moment.strftime(HEADER_TIMESTAMP_FORMAT)
    header = f"=== Pod: {pod_name} | Container: {container_name} | Collected: {collected} ===\n\n"
    return header.encode("utf-8")
