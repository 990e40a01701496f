"""Logging for benchmark runs.

Records carry optional run fields passed through ``extra``: the
operation kind and worker, the operation ``index``/``key``/``duration_ms``
for per-request lines, and the summary counters of the final report.

Usage::

    from s3pt.logging_setup import setup_logging, get_logger

    setup_logging(level="DEBUG")
    logger = get_logger(operation="UPLOAD", worker_id=0)
    logger.debug("failed", extra={"index": 7, "key": "s3pt/0000000007"})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from s3pt.config import DEFAULT_LOG_LEVEL

LOGGER_NAME = "s3pt"

OPERATION_FIELDS = ("operation", "worker_id", "index", "key", "duration_ms")
SUMMARY_FIELDS = ("successes", "failures", "elapsed_ms")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def run_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the run fields present on a record."""
    return {
        name: getattr(record, name)
        for name in OPERATION_FIELDS + SUMMARY_FIELDS
        if getattr(record, name, None) is not None
    }


class RunFormatter(logging.Formatter):
    """Human-readable lines prefixed with ``[OPERATION:W<n> #<index>]``."""

    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(run_tag)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_color = use_color

    @staticmethod
    def run_tag(fields: dict[str, Any]) -> str:
        """Render ``[UPLOAD:W1 #7 s3pt/0000000007 12.3ms] `` from fields."""
        parts = []
        if "operation" in fields or "worker_id" in fields:
            head = str(fields.get("operation", "-"))
            if "worker_id" in fields:
                head += f":W{fields['worker_id']}"
            parts.append(head)
        if "index" in fields:
            parts.append(f"#{fields['index']}")
        if "key" in fields:
            parts.append(str(fields["key"]))
        if "duration_ms" in fields:
            parts.append(f"{fields['duration_ms']:.1f}ms")
        return f"[{' '.join(parts)}] " if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        record.run_tag = self.run_tag(run_fields(record))
        line = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{line}{_RESET}" if color else line


class JsonFormatter(logging.Formatter):
    """One JSON object per line with the run fields as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "msg": record.getMessage(),
        }
        data.update(run_fields(record))
        return json.dumps(data, default=str)


class RunLogger(logging.LoggerAdapter):
    """Adapter whose fixed fields are merged under any per-call ``extra``."""

    def process(
        self,
        msg: str,
        kwargs: dict[str, Any],
    ) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def setup_logging(
    *,
    level: str | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the ``s3pt`` logger.

    ``S3PT_LOG_JSON=1`` switches to JSON lines; ``S3PT_LOG_FILE`` (or
    ``log_file``) adds an uncolored file handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(
        getattr(logging, (level or DEFAULT_LOG_LEVEL).upper(), logging.INFO)
    )
    logger.handlers.clear()
    logger.propagate = False

    as_json = os.environ.get("S3PT_LOG_JSON", "0") == "1"

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(
        JsonFormatter() if as_json
        else RunFormatter(use_color=sys.stderr.isatty())
    )
    logger.addHandler(console)

    log_file = log_file or os.environ.get("S3PT_LOG_FILE")
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            JsonFormatter() if as_json else RunFormatter()
        )
        logger.addHandler(file_handler)

    return logger


def get_logger(
    *,
    operation: str | None = None,
    worker_id: int | None = None,
) -> RunLogger:
    """Get the ``s3pt`` logger with fixed run fields attached."""
    extra: dict[str, Any] = {}
    if operation is not None:
        extra["operation"] = operation
    if worker_id is not None:
        extra["worker_id"] = worker_id
    return RunLogger(logging.getLogger(LOGGER_NAME), extra)
