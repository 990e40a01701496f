"""Utility functions — retry logic, size parsing, formatting."""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Any, Callable

from s3pt.config import RETRY_BASE_DELAY, RETRY_MAX_DELAY
from s3pt.errors import StorageServiceError, TransportError, classify_error

_RETRYABLE_CODES = (
    "RequestTimeout",
    "RequestTimeoutException",
    "PriorRequestNotComplete",
    "SlowDown",
    "ServiceUnavailable",
    "InternalError",
)
_RETRYABLE_STATUSES = (429, 500, 502, 503, 504)

_SIZE_UNITS = {"B": 1, "K": 1024, "M": 1024 * 1024}
_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([BKM]?)\s*$", re.IGNORECASE)


def is_retryable(exc: BaseException) -> bool:
    """Check whether a failed request is worth another attempt.

    Throttling, 5xx responses and timeouts are retried. Refused or
    reset connections are not: the endpoint is down, not busy.
    """
    error = classify_error(exc)
    if isinstance(error, StorageServiceError):
        return (
            error.code in _RETRYABLE_CODES
            or error.status in _RETRYABLE_STATUSES
        )
    if isinstance(error, TransportError):
        error_str = str(error).lower()
        connection_errors = (
            "connection refused",
            "connection reset",
            "errno 111",
        )
        if any(e in error_str for e in connection_errors):
            return False
        return "timeout" in error_str or "timed out" in error_str
    return False


def retry_with_backoff(
    func: Callable[[], Any],
    *,
    max_retries: int = 0,
    base_delay: float | None = None,
    max_delay: float | None = None,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> Any:
    """Call ``func`` and retry transient failures with exponential backoff.

    Args:
        func: Function to execute.
        max_retries: Retries after the first attempt (0 = call once).
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay between retries.
        logger: Optional logger for retry events.

    Returns:
        Result from func() if successful.

    Raises:
        Exception: The last error once retries are exhausted, or the
            first non-retryable error.
    """
    if base_delay is None:
        base_delay = RETRY_BASE_DELAY
    if max_delay is None:
        max_delay = RETRY_MAX_DELAY

    attempt = 0
    while True:
        try:
            return func()
        except Exception as exc:
            if attempt >= max_retries or not is_retryable(exc):
                raise
            delay = min(base_delay * (2 ** attempt), max_delay)
            jitter = random.uniform(0, delay * 0.3)
            attempt += 1
            if logger:
                logger.debug(
                    f"Retry {attempt}/{max_retries}: "
                    f"{type(exc).__name__}, "
                    f"backoff {delay + jitter:.2f}s"
                )
            time.sleep(delay + jitter)


def parse_size(value: str | int) -> int:
    """Parse a byte size with an optional B/K/M unit suffix.

    Args:
        value: Size like ``65536``, ``512B``, ``64K`` or ``1M``.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If the format is invalid or the size is not positive.
    """
    if isinstance(value, int):
        size = value
    else:
        match = _SIZE_PATTERN.match(value)
        if not match:
            raise ValueError(
                f"Invalid size: {value!r}. "
                f"Supported units: B, K, M"
            )
        number, unit = match.groups()
        size = int(number) * _SIZE_UNITS[(unit or "B").upper()]

    if size <= 0:
        raise ValueError(f"Size must be positive: {value}")
    return size


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string.

    Args:
        size: Size in bytes.

    Returns:
        Human-readable size string.
    """
    if size < 1024:
        return f"{size:.0f}B"
    elif size < 1024**2:
        return f"{size / 1024:.1f}KB"
    elif size < 1024**3:
        return f"{size / 1024**2:.1f}MB"
    else:
        return f"{size / 1024**3:.1f}GB"


def format_duration(seconds: float) -> str:
    """Format seconds into a compact human-readable duration."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{int(seconds) // 60}m{int(seconds) % 60:02d}s"
    else:
        return f"{int(seconds) // 3600}h{int(seconds) % 3600 // 60:02d}m"
