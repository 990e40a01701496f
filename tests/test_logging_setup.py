import json
import logging

import pytest

from s3pt.logging_setup import (
    LOGGER_NAME,
    JsonFormatter,
    RunFormatter,
    get_logger,
    run_fields,
    setup_logging,
)


def make_record(msg="failed: timeout", level=logging.DEBUG, **fields):
    return logging.makeLogRecord(
        {"name": LOGGER_NAME, "levelno": level,
         "levelname": logging.getLevelName(level), "msg": msg, **fields}
    )


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    logger.handlers.clear()
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_run_fields_skips_absent_and_none():
    record = make_record(operation="UPLOAD", worker_id=None, index=3)
    assert run_fields(record) == {"operation": "UPLOAD", "index": 3}


def test_text_line_carries_operation_context():
    record = make_record(
        operation="UPLOAD", worker_id=1, index=7,
        key="s3pt/0000000007", duration_ms=12.34,
    )
    line = RunFormatter().format(record)
    assert line.endswith(
        "[UPLOAD:W1 #7 s3pt/0000000007 12.3ms] failed: timeout"
    )
    assert "DEBUG" in line


def test_text_line_without_context_is_plain():
    line = RunFormatter().format(make_record("Total time = 5 ms"))
    assert line.endswith("Total time = 5 ms")
    assert "[" not in line


def test_text_line_colors_only_when_enabled():
    record = make_record(level=logging.WARNING)
    assert "\033[" not in RunFormatter().format(record)
    assert RunFormatter(use_color=True).format(record).startswith("\033[33m")


def test_json_line_carries_operation_and_summary_fields():
    record = make_record(
        "FINAL", level=logging.INFO, operation="DOWNLOAD",
        successes=9, failures=1, elapsed_ms=1500.0,
    )
    data = json.loads(JsonFormatter().format(record))
    assert data["msg"] == "FINAL"
    assert data["level"] == "INFO"
    assert data["operation"] == "DOWNLOAD"
    assert (data["successes"], data["failures"], data["elapsed_ms"]) == (
        9, 1, 1500.0,
    )
    assert "index" not in data


def test_adapter_merges_call_fields_over_fixed_fields(caplog, restore_logger):
    logging.getLogger(LOGGER_NAME).propagate = True
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

    logger = get_logger(operation="UPLOAD", worker_id=0)
    logger.debug("failed", extra={"worker_id": 2, "index": 5, "key": "k"})

    (record,) = caplog.records
    assert run_fields(record) == {
        "operation": "UPLOAD", "worker_id": 2, "index": 5, "key": "k",
    }


def test_setup_logging_json_mode(monkeypatch, capsys, restore_logger):
    monkeypatch.setenv("S3PT_LOG_JSON", "1")
    monkeypatch.delenv("S3PT_LOG_FILE", raising=False)
    setup_logging(level="info")

    get_logger(operation="UPLOAD").info("started", extra={"index": 0})
    get_logger().debug("hidden")

    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["index"] == 0


def test_setup_logging_writes_file(monkeypatch, tmp_path, restore_logger):
    monkeypatch.delenv("S3PT_LOG_JSON", raising=False)
    log_file = tmp_path / "run.log"
    logger = setup_logging(level="DEBUG", log_file=str(log_file))

    get_logger(operation="DOWNLOAD", worker_id=3).debug(
        "failed", extra={"index": 4, "key": "s3pt/0000000004"}
    )
    for handler in logger.handlers:
        handler.flush()
        handler.close()

    text = log_file.read_text()
    assert "[DOWNLOAD:W3 #4 s3pt/0000000004] failed" in text
    assert "\033[" not in text
