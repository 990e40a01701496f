"""Error taxonomy — What can go wrong and where it stops.

Configuration and startup errors propagate to the CLI and stop the run
before any request is made. Transport and service errors are caught per
operation by the executor and only ever show up inside results.
"""

from __future__ import annotations

from botocore.exceptions import (
    ClientError,
    ConnectionError as BotocoreConnectionError,
    HTTPClientError,
)
from urllib3.exceptions import HTTPError as Urllib3HTTPError

__all__ = [
    "S3ptError",
    "ConfigurationError",
    "TransportError",
    "StorageServiceError",
    "SchedulerFatalError",
    "classify_error",
]


class S3ptError(Exception):
    """Base class for all s3pt errors."""


class ConfigurationError(S3ptError):
    """Invalid run configuration; the benchmark does not start."""


class TransportError(S3ptError):
    """Network-level failure of a single operation."""


class StorageServiceError(S3ptError):
    """The endpoint answered with an error response."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        status: int = 0,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class SchedulerFatalError(S3ptError):
    """The worker pool or the storage client could not be started."""


def _client_error_details(exc: ClientError) -> tuple[str, int]:
    code = exc.response.get("Error", {}).get("Code", "")
    status = exc.response.get(
        "ResponseMetadata", {},
    ).get("HTTPStatusCode", 0)
    return str(code), int(status or 0)


def classify_error(exc: BaseException) -> S3ptError:
    """Map a client-library exception onto the s3pt taxonomy.

    Args:
        exc: Exception raised by a storage client call.

    Returns:
        A ``TransportError`` or ``StorageServiceError`` wrapping the
        original exception (already-classified errors pass through).
    """
    if isinstance(exc, S3ptError):
        return exc

    if isinstance(exc, ClientError):
        code, status = _client_error_details(exc)
        error: S3ptError = StorageServiceError(
            str(exc), code=code or str(status), status=status,
        )
    elif isinstance(
        exc,
        (BotocoreConnectionError, HTTPClientError, Urllib3HTTPError,
         OSError),
    ):
        error = TransportError(str(exc) or type(exc).__name__)
    elif _is_minio_error(exc):
        error = StorageServiceError(
            str(exc),
            code=getattr(exc, "code", "") or "",
            status=getattr(getattr(exc, "response", None), "status", 0)
            or 0,
        )
    else:
        error = TransportError(f"{type(exc).__name__}: {exc}")

    error.__cause__ = exc
    return error


def _is_minio_error(exc: BaseException) -> bool:
    # minio is an optional backend; match by name to avoid importing it
    return type(exc).__name__ in ("S3Error", "ServerError")
