from __future__ import annotations

import logging
import threading
import time

import pytest
from botocore.exceptions import ClientError

from s3pt.models import Operation, RunConfiguration


def client_error(code: str, status: int, operation: str = "GetObject"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeS3Client:
    """In-memory storage client recording every call."""

    def __init__(self, *, delay: float = 0) -> None:
        self.delay = delay
        self.objects: dict[tuple[str, str], bytes] = {}
        self.puts: list[dict] = []
        self.gets: list[str] = []
        # key -> list of exceptions raised on successive calls
        self.failures: dict[str, list[Exception]] = {}
        self.threads: dict[str, str] = {}
        self.closed = False
        self._lock = threading.Lock()

    def _maybe_fail(self, key: str) -> None:
        with self._lock:
            pending = self.failures.get(key)
            exc = pending.pop(0) if pending else None
        if exc is not None:
            raise exc

    def put_object(self, bucket, key, data, content_encoding=None):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.puts.append(
                {
                    "bucket": bucket,
                    "key": key,
                    "data": data,
                    "content_encoding": content_encoding,
                }
            )
            self.threads[key] = threading.current_thread().name
        self._maybe_fail(key)
        with self._lock:
            self.objects[(bucket, key)] = data
        return {"ETag": '"fake"'}

    def get_object(self, bucket, key):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.gets.append(key)
        self._maybe_fail(key)
        with self._lock:
            try:
                return self.objects[(bucket, key)]
            except KeyError:
                raise client_error("NoSuchKey", 404) from None

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeS3Client()


@pytest.fixture
def make_config(fake_client):
    def _make(**kwargs) -> RunConfiguration:
        params = {
            "operation": Operation.UPLOAD,
            "number": 10,
            "threads": 3,
            "size": 1024,
            "bucket": "bench",
            "client": fake_client,
        }
        params.update(kwargs)
        return RunConfiguration(**params)

    return _make


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("s3pt.utils.time.sleep", lambda _: None)


@pytest.fixture
def make_client_error():
    return client_error


@pytest.fixture
def slow_client():
    return FakeS3Client(delay=0.02)


@pytest.fixture(autouse=True)
def _isolate_s3pt_logger():
    """Restore the ``s3pt`` logger after tests that call ``setup_logging``."""
    logger = logging.getLogger("s3pt")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
