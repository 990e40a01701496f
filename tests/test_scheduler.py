import threading
from collections import defaultdict

import pytest

from s3pt.errors import ConfigurationError, SchedulerFatalError
from s3pt.keys import object_key
from s3pt.models import Operation, OperationResult
from s3pt.scheduler import (
    ResultAggregator,
    SchedulerState,
    WorkloadScheduler,
    partition,
)


class RecordingExecutor:
    """Succeeds instantly and records (worker_id, index) per call."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []
        self._lock = threading.Lock()

    def execute(self, item, worker_id=None):
        with self._lock:
            self.calls.append((worker_id, item.index))
        if item.index in self.fail_on:
            raise RuntimeError(f"boom {item.index}")
        return OperationResult(
            index=item.index,
            key=item.key,
            success=True,
            duration=0.001,
            bytes=1,
            worker_id=worker_id,
        )


def by_worker(pairs):
    grouped = defaultdict(list)
    for worker_id, index in pairs:
        grouped[worker_id].append(index)
    return dict(grouped)


def test_partition_round_robin():
    shares = partition(10, 3)
    assert [list(s) for s in shares] == [[0, 3, 6, 9], [1, 4, 7], [2, 5, 8]]


def test_partition_more_threads_than_operations():
    shares = partition(2, 4)
    assert [list(s) for s in shares] == [[0], [1], [], []]


@pytest.mark.parametrize("number,threads", [(0, 1), (1, 0), (-3, 2)])
def test_partition_rejects_empty_runs(number, threads):
    with pytest.raises(ConfigurationError):
        partition(number, threads)


@pytest.mark.parametrize(
    "number,threads",
    [(1, 1), (10, 3), (7, 7), (5, 10), (100, 8), (33, 4), (64, 1)],
)
def test_every_index_dispatched_exactly_once(make_config, number, threads):
    executor = RecordingExecutor()
    scheduler = WorkloadScheduler(
        make_config(number=number, threads=threads), executor,
    )
    report = scheduler.run()

    indices = [index for _, index in executor.calls]
    assert len(indices) == number
    assert sorted(indices) == list(range(number))
    assert sum(scheduler.worker_counts) == number
    assert report.successes + report.failures == number
    assert report.completed


def test_single_thread_runs_in_index_order(make_config):
    executor = RecordingExecutor()
    WorkloadScheduler(make_config(number=25, threads=1), executor).run()
    assert [index for _, index in executor.calls] == list(range(25))


def test_each_worker_runs_its_share_in_order(make_config):
    executor = RecordingExecutor()
    WorkloadScheduler(make_config(number=50, threads=4), executor).run()
    for worker_id, indices in by_worker(executor.calls).items():
        assert indices == list(range(worker_id, 50, 4))


def test_upload_scenario_ten_ops_three_threads(make_config, fake_client):
    seen = []
    lock = threading.Lock()

    def on_result(result):
        with lock:
            seen.append((result.worker_id, result.index))

    config = make_config(number=10, threads=3, size=1024, gzip=False)
    report = WorkloadScheduler(config, on_result=on_result).run()

    assert by_worker(seen) == {
        0: [0, 3, 6, 9],
        1: [1, 4, 7],
        2: [2, 5, 8],
    }
    assert len(fake_client.puts) == 10
    assert all(len(put["data"]) == 1024 for put in fake_client.puts)
    assert all(put["content_encoding"] is None for put in fake_client.puts)
    assert {put["key"] for put in fake_client.puts} == {
        object_key(i) for i in range(10)
    }
    assert report.successes == 10
    assert report.failures == 0
    assert report.bytes == 10 * 1024


def test_download_more_threads_than_operations(make_config, fake_client):
    fake_client.objects[("bench", object_key(0))] = b"x" * 10
    fake_client.objects[("bench", object_key(3))] = b"y" * 10

    config = make_config(operation=Operation.DOWNLOAD, number=5, threads=10)
    scheduler = WorkloadScheduler(config)
    report = scheduler.run()

    assert scheduler.worker_counts == [1] * 5 + [0] * 5
    assert sorted(fake_client.gets) == [object_key(i) for i in range(5)]
    assert report.successes == 2
    assert report.failures == 3
    assert report.failures_by_cause == {"NoSuchKey": 3}
    assert report.completed


def test_single_failure_does_not_stop_run(
    make_config, fake_client, make_client_error,
):
    fake_client.failures[object_key(4)] = [
        make_client_error("AccessDenied", 403, "PutObject"),
    ]
    report = WorkloadScheduler(make_config(number=10, threads=3)).run()

    assert len(fake_client.puts) == 10
    assert report.failures == 1
    assert report.successes == 9
    assert report.failures_by_cause == {"AccessDenied": 1}


def test_raising_executor_is_recorded_as_failure(make_config):
    executor = RecordingExecutor(fail_on={2})
    report = WorkloadScheduler(
        make_config(number=6, threads=2), executor,
    ).run()

    assert len(executor.calls) == 6
    assert report.successes == 5
    assert report.failures == 1
    assert report.failures_by_cause == {"TransportError": 1}


def test_invalid_configuration_runs_nothing(make_config, fake_client):
    with pytest.raises(ConfigurationError):
        make_config(number=0)
    with pytest.raises(ConfigurationError):
        make_config(threads=0)
    assert fake_client.puts == []


def test_state_transitions(make_config):
    scheduler = WorkloadScheduler(
        make_config(number=3, threads=1), RecordingExecutor(),
    )
    assert scheduler.state is SchedulerState.NOT_STARTED
    scheduler.run()
    assert scheduler.state is SchedulerState.COMPLETED

    with pytest.raises(SchedulerFatalError):
        scheduler.run()


def test_cancel_lets_in_flight_finish_and_starts_nothing_new(make_config):
    executor = RecordingExecutor()
    scheduler = WorkloadScheduler(make_config(number=20, threads=1), executor)

    def on_result(result):
        if result.index == 2:
            scheduler.cancel()

    scheduler.on_result = on_result
    report = scheduler.run()

    assert [index for _, index in executor.calls] == [0, 1, 2]
    assert report.attempted == 3
    assert report.cancelled
    assert not report.completed
    assert scheduler.state is SchedulerState.COMPLETED


def test_cancel_before_run_is_ignored(make_config):
    scheduler = WorkloadScheduler(
        make_config(number=4, threads=2), RecordingExecutor(),
    )
    scheduler.cancel()
    report = scheduler.run()
    assert report.attempted == 4
    assert not report.cancelled


def test_timeout_reports_partial_results(make_config, slow_client):
    config = make_config(
        client=slow_client, number=200, threads=2, timeout=0.1,
    )
    scheduler = WorkloadScheduler(config)
    report = scheduler.run()

    assert 0 < report.attempted < 200
    assert report.attempted == len(slow_client.puts)
    assert report.cancelled
    assert scheduler.state is SchedulerState.COMPLETED


def test_pool_startup_failure_is_fatal(make_config, monkeypatch):
    def broken_pool(*args, **kwargs):
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr("s3pt.scheduler.ThreadPoolExecutor", broken_pool)
    scheduler = WorkloadScheduler(make_config(), RecordingExecutor())
    with pytest.raises(SchedulerFatalError):
        scheduler.run()


def test_snapshot_reflects_progress(make_config):
    scheduler = WorkloadScheduler(
        make_config(number=5, threads=2), RecordingExecutor(),
    )
    assert scheduler.snapshot()["elapsed"] == 0.0
    scheduler.run()
    stats = scheduler.snapshot()
    assert stats["successes"] == 5
    assert stats["failures"] == 0
    assert stats["bytes"] == 5


def test_aggregator_rejects_duplicate_index():
    aggregator = ResultAggregator()
    result = OperationResult(index=1, key="k", success=True, duration=0.1)
    aggregator.add(result)
    with pytest.raises(SchedulerFatalError):
        aggregator.add(result)
