"""Run configuration, work items, results and the aggregate report."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from s3pt.config import DEFAULT_KEY_PREFIX, DEFAULT_RETRIES
from s3pt.errors import ConfigurationError, S3ptError, StorageServiceError


class Operation(enum.Enum):
    """Operation kind of a run (one kind per run)."""

    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"

    @classmethod
    def parse(cls, name: str | Operation) -> Operation:
        """Resolve an operation name, case-insensitively.

        Raises:
            ConfigurationError: If the name is not a known operation.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            available = ", ".join(op.name for op in cls)
            raise ConfigurationError(
                f"Unknown operation '{name}'. Available: {available}"
            ) from None


def _is_count(value) -> bool:
    # bool is an int subclass but never a valid count
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable description of one benchmark run.

    Attributes:
        operation: What every operation of the run does.
        number: Total operation count N.
        threads: Worker count T (T > N is allowed).
        size: Payload size in bytes (uncompressed).
        bucket: Target bucket, assumed to exist.
        client: Storage client shared by all workers.
        gzip: Compress upload bodies.
        key_prefix: Prefix for derived object keys.
        retries: Extra attempts for transient failures (0 = none).
        timeout: Optional wall-clock bound for the whole run, seconds.
    """

    operation: Operation
    number: int
    threads: int
    size: int
    bucket: str
    client: Any = field(repr=False, compare=False)
    gzip: bool = False
    key_prefix: str = DEFAULT_KEY_PREFIX
    retries: int = DEFAULT_RETRIES
    timeout: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", Operation.parse(self.operation))
        self.validate()

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ConfigurationError: On the first invalid field.
        """
        if not _is_count(self.number) or self.number < 1:
            raise ConfigurationError(
                f"Number of operations must be >= 1: {self.number}"
            )
        if not _is_count(self.threads) or self.threads < 1:
            raise ConfigurationError(
                f"Number of threads must be >= 1: {self.threads}"
            )
        if not _is_count(self.size) or self.size < 1:
            raise ConfigurationError(
                f"Payload size must be >= 1 byte: {self.size}"
            )
        if not self.bucket:
            raise ConfigurationError("Bucket name is required")
        if self.client is None:
            raise ConfigurationError("Storage client is required")
        if not _is_count(self.retries) or self.retries < 0:
            raise ConfigurationError(
                f"Retries must be >= 0: {self.retries}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive: {self.timeout}"
            )


@dataclass(frozen=True)
class WorkItem:
    """A single operation to execute."""

    index: int
    key: str
    operation: Operation


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one executed work item.

    ``duration`` is in seconds and covers every attempt when retries
    are enabled. ``bytes`` counts the body sent (upload) or received
    (download).
    """

    index: int
    key: str
    success: bool
    duration: float
    error: S3ptError | None = None
    bytes: int = 0
    worker_id: int | None = None

    @property
    def error_cause(self) -> str | None:
        """Short failure cause: the service error code or error type."""
        if self.error is None:
            return None
        if isinstance(self.error, StorageServiceError) and self.error.code:
            return self.error.code
        return type(self.error).__name__


@dataclass(frozen=True)
class AggregateReport:
    """Summary of a finished run, handed to the reporter."""

    operation: Operation
    number: int
    threads: int
    successes: int
    failures: int
    elapsed: float
    bytes: int = 0
    failures_by_cause: dict[str, int] = field(default_factory=dict)
    latencies: tuple[float, ...] = ()
    cancelled: bool = False

    @property
    def attempted(self) -> int:
        return self.successes + self.failures

    @property
    def completed(self) -> bool:
        """True when every one of the N operations was attempted."""
        return not self.cancelled and self.attempted == self.number

    @property
    def ops_per_second(self) -> float:
        return self.attempted / self.elapsed if self.elapsed > 0 else 0.0

    @property
    def bytes_per_second(self) -> float:
        return self.bytes / self.elapsed if self.elapsed > 0 else 0.0

    def latency_percentiles(self) -> dict[str, float]:
        """Get p50/p95/p99/max latency of successful operations.

        Returns:
            Dict like ``{"p50": 2.1, "p95": 15.3, ...}`` in milliseconds,
            empty when nothing succeeded.
        """
        vals = sorted(self.latencies)
        n = len(vals)
        if not n:
            return {}
        return {
            "p50": vals[int(n * 0.50)] * 1000,
            "p95": vals[int(min(n * 0.95, n - 1))] * 1000,
            "p99": vals[int(min(n * 0.99, n - 1))] * 1000,
            "max": vals[-1] * 1000,
            "count": n,
        }
