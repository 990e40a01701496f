"""Reporter — Logs progress and the final summary of a run."""

from __future__ import annotations

import logging
from typing import Any

from s3pt.models import AggregateReport
from s3pt.utils import format_bytes, format_duration


def format_latency_line(percentiles: dict[str, float]) -> str:
    """Format latency percentiles into a compact log line."""
    if not percentiles:
        return ""
    return (
        f"p50={percentiles['p50']:.1f}ms "
        f"p95={percentiles['p95']:.1f}ms "
        f"p99={percentiles['p99']:.1f}ms "
        f"max={percentiles['max']:.1f}ms"
    )


def format_failures(failures_by_cause: dict[str, int]) -> str:
    """Format failure counts as ``cause=count`` pairs, most frequent first."""
    ordered = sorted(
        failures_by_cause.items(), key=lambda item: (-item[1], item[0]),
    )
    return ", ".join(f"{cause}={count}" for cause, count in ordered)


def format_stats(stats: dict[str, Any], number: int) -> str:
    """Format a running snapshot from ``WorkloadScheduler.snapshot``."""
    attempted = stats["successes"] + stats["failures"]
    elapsed = stats["elapsed"]
    ops_sec = attempted / elapsed if elapsed > 0 else 0
    bytes_sec = stats["bytes"] / elapsed if elapsed > 0 else 0
    return (
        f"STATS: ops={attempted:,}/{number:,} "
        f"({ops_sec:.1f}/s), "
        f"bytes={format_bytes(stats['bytes'])} "
        f"({format_bytes(bytes_sec)}/s), "
        f"errors={stats['failures']}, "
        f"elapsed={format_duration(elapsed)}"
    )


def report(
    summary: AggregateReport,
    logger: logging.Logger | logging.LoggerAdapter,
) -> None:
    """Log the final summary of a run.

    Args:
        summary: The finalized aggregate report.
        logger: Logger to write to.
    """
    logger.info(
        f"FINAL: {summary.operation.name} "
        f"ops={summary.attempted:,}/{summary.number:,} "
        f"({summary.ops_per_second:.1f}/s), "
        f"successes={summary.successes}, "
        f"failures={summary.failures}, "
        f"bytes={format_bytes(summary.bytes)} "
        f"({format_bytes(summary.bytes_per_second)}/s), "
        f"threads={summary.threads}",
        extra={
            "operation": summary.operation.name,
            "successes": summary.successes,
            "failures": summary.failures,
            "elapsed_ms": round(summary.elapsed * 1000, 1),
        },
    )

    lat_line = format_latency_line(summary.latency_percentiles())
    if lat_line:
        logger.info(f"Latency: {lat_line}")

    if summary.failures:
        logger.warning(
            f"Benchmark completed with errors: "
            f"{format_failures(summary.failures_by_cause)}",
        )
    if summary.cancelled:
        logger.warning(
            f"Run stopped early: "
            f"{summary.number - summary.attempted} operations not started",
        )
