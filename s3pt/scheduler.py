"""Workload scheduler — spreads N operations over T worker threads.

Indices are assigned round-robin: worker ``i`` runs ``i, i+T, i+2T, ...``
in increasing order, one operation at a time. Results from all workers
land in a single lock-protected aggregator.

Usage::

    scheduler = WorkloadScheduler(config)
    report = scheduler.run()
"""

from __future__ import annotations

import enum
import time
from collections import Counter
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from threading import Event, Lock
from typing import Any, Callable

from s3pt.errors import (
    ConfigurationError,
    SchedulerFatalError,
    classify_error,
)
from s3pt.executor import OperationExecutor
from s3pt.keys import object_key
from s3pt.logging_setup import get_logger
from s3pt.models import (
    AggregateReport,
    OperationResult,
    RunConfiguration,
    WorkItem,
)
from s3pt.utils import format_duration


class SchedulerState(enum.Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    CANCELLING = "Cancelling"
    COMPLETED = "Completed"


def partition(number: int, threads: int) -> list[range]:
    """Split ``[0, number)`` round-robin into one share per worker.

    Args:
        number: Total operation count N.
        threads: Worker count T.

    Returns:
        ``threads`` ranges; share ``i`` is ``range(i, number, threads)``.
        Shares of workers with ``i >= number`` are empty.

    Raises:
        ConfigurationError: If either count is below 1.
    """
    if number < 1:
        raise ConfigurationError(
            f"Number of operations must be >= 1: {number}"
        )
    if threads < 1:
        raise ConfigurationError(
            f"Number of threads must be >= 1: {threads}"
        )
    return [range(i, number, threads) for i in range(threads)]


class ResultAggregator:
    """Thread-safe accumulator for operation results."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.successes = 0
        self.failures = 0
        self.bytes = 0
        self.failures_by_cause: Counter[str] = Counter()
        self._latencies: list[float] = []
        self._seen: set[int] = set()

    def add(self, result: OperationResult) -> None:
        """Record one result.

        Raises:
            SchedulerFatalError: If the same index is reported twice.
        """
        with self._lock:
            if result.index in self._seen:
                raise SchedulerFatalError(
                    f"Operation #{result.index} reported twice"
                )
            self._seen.add(result.index)
            if result.success:
                self.successes += 1
                self.bytes += result.bytes
                self._latencies.append(result.duration)
            else:
                self.failures += 1
                self.failures_by_cause[result.error_cause or "unknown"] += 1

    def snapshot(self) -> dict[str, Any]:
        """Consistent copy of the running counters."""
        with self._lock:
            return {
                "successes": self.successes,
                "failures": self.failures,
                "bytes": self.bytes,
                "failures_by_cause": dict(self.failures_by_cause),
            }

    def finalize(
        self,
        config: RunConfiguration,
        *,
        elapsed: float,
        cancelled: bool = False,
    ) -> AggregateReport:
        """Freeze the counters into a report."""
        with self._lock:
            return AggregateReport(
                operation=config.operation,
                number=config.number,
                threads=config.threads,
                successes=self.successes,
                failures=self.failures,
                elapsed=elapsed,
                bytes=self.bytes,
                failures_by_cause=dict(self.failures_by_cause),
                latencies=tuple(self._latencies),
                cancelled=cancelled,
            )


class WorkloadScheduler:
    """Runs a benchmark with a pool of worker threads.

    Args:
        config: The run configuration.
        executor: Operation executor; built from ``config`` when omitted.
        on_result: Optional callback invoked with every result, from
            the worker thread that produced it.
    """

    def __init__(
        self,
        config: RunConfiguration,
        executor: OperationExecutor | None = None,
        *,
        on_result: Callable[[OperationResult], None] | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.on_result = on_result
        self.aggregator = ResultAggregator()
        self.stop_event = Event()
        self.start_time: float | None = None
        self.worker_counts: list[int] = []
        self._state = SchedulerState.NOT_STARTED
        self._state_lock = Lock()
        self.logger = get_logger(operation=config.operation.name)

    @property
    def state(self) -> SchedulerState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: SchedulerState) -> None:
        with self._state_lock:
            self._state = state

    def cancel(self) -> None:
        """Stop dispatching; in-flight operations still finish."""
        with self._state_lock:
            if self._state is not SchedulerState.RUNNING:
                return
            self._state = SchedulerState.CANCELLING
        self.stop_event.set()
        self.logger.info("Cancelling, waiting for in-flight operations")

    def snapshot(self) -> dict[str, Any]:
        """Running counters plus elapsed time, for periodic stats."""
        stats = self.aggregator.snapshot()
        stats["elapsed"] = (
            time.perf_counter() - self.start_time
            if self.start_time is not None else 0.0
        )
        return stats

    def _worker(self, worker_id: int, indices: range) -> int:
        """Run one worker's share in order; returns operations dispatched."""
        dispatched = 0
        for index in indices:
            if self.stop_event.is_set():
                break
            item = WorkItem(
                index=index,
                key=object_key(index, self.config.key_prefix),
                operation=self.config.operation,
            )
            try:
                result = self.executor.execute(item, worker_id=worker_id)
            except Exception as exc:
                self.logger.warning(
                    f"Executor raised: {exc}",
                    extra={
                        "worker_id": worker_id,
                        "index": index,
                        "key": item.key,
                    },
                )
                result = OperationResult(
                    index=index,
                    key=item.key,
                    success=False,
                    duration=0.0,
                    error=classify_error(exc),
                    worker_id=worker_id,
                )
            dispatched += 1
            self.aggregator.add(result)
            if self.on_result is not None:
                self.on_result(result)
        self.worker_counts[worker_id] = dispatched
        return dispatched

    def run(self) -> AggregateReport:
        """Execute the whole workload and block until it is done.

        Returns:
            The final (possibly partial, after cancel or timeout) report.

        Raises:
            ConfigurationError: If N or T is below 1.
            SchedulerFatalError: If the scheduler was already run or the
                worker pool cannot be started.
        """
        shares = partition(self.config.number, self.config.threads)

        with self._state_lock:
            if self._state is not SchedulerState.NOT_STARTED:
                raise SchedulerFatalError(
                    f"Scheduler cannot run from state {self._state.value}"
                )
            self._state = SchedulerState.RUNNING

        if self.executor is None:
            self.executor = OperationExecutor(self.config)

        self.worker_counts = [0] * self.config.threads
        self.logger.info(
            f"Starting {self.config.number} {self.config.operation.name} "
            f"operations with {self.config.threads} threads"
        )

        self.start_time = time.perf_counter()
        try:
            pool = ThreadPoolExecutor(
                max_workers=self.config.threads,
                thread_name_prefix="s3pt-worker",
            )
        except Exception as exc:
            self._set_state(SchedulerState.COMPLETED)
            raise SchedulerFatalError(
                f"Cannot create worker pool: {exc}"
            ) from exc

        with pool:
            futures = []
            try:
                for worker_id, share in enumerate(shares):
                    futures.append(
                        pool.submit(self._worker, worker_id, share)
                    )
            except RuntimeError as exc:
                self.stop_event.set()
                self._set_state(SchedulerState.COMPLETED)
                raise SchedulerFatalError(
                    f"Cannot start worker {len(futures)}: {exc}"
                ) from exc

            done, pending = wait(
                futures,
                timeout=self.config.timeout,
                return_when=FIRST_EXCEPTION,
            )
            if any(f.exception() for f in done):
                self.stop_event.set()
            elif pending:
                self.logger.warning(
                    f"Timeout of {format_duration(self.config.timeout)} "
                    f"reached, stopping workers"
                )
                self.cancel()
            wait(futures)

        elapsed = time.perf_counter() - self.start_time

        for future in futures:
            exc = future.exception()
            if exc is not None:
                self._set_state(SchedulerState.COMPLETED)
                raise SchedulerFatalError(
                    f"Worker thread failed: {exc}"
                ) from exc

        cancelled = (
            self.stop_event.is_set()
            and sum(self.worker_counts) < self.config.number
        )
        self._set_state(SchedulerState.COMPLETED)
        report = self.aggregator.finalize(
            self.config, elapsed=elapsed, cancelled=cancelled,
        )
        self.logger.debug(
            f"Operations per worker: {self.worker_counts}"
        )
        return report
