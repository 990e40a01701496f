"""Run command — Execute a benchmark run.

Resolves credentials, builds the storage client and the run
configuration, then drives the scheduler with signal-based shutdown,
periodic stats reporting and a final summary.
"""

from __future__ import annotations

import os
import signal
import threading
import time
from argparse import Namespace
from threading import Event, Thread

from s3pt.config import ENV_ACCESS_KEY, ENV_SECRET_KEY
from s3pt.errors import ConfigurationError, SchedulerFatalError
from s3pt.executor import OperationExecutor
from s3pt.logging_setup import get_logger, setup_logging
from s3pt.models import Operation, RunConfiguration
from s3pt.report import format_stats, report
from s3pt.s3_client import ClientSettings, S3Client, SigningScheme
from s3pt.scheduler import WorkloadScheduler


def resolve_credential(
    value: str | None,
    *,
    flag: str,
    env_key: str,
    logger: object,
) -> str:
    """Pick a credential from the flag or, failing that, the environment.

    Args:
        value: Value given on the command line, if any.
        flag: Flag name, for messages.
        env_key: Environment variable to fall back to.
        logger: Logger for the source decision.

    Returns:
        The credential.

    Raises:
        ConfigurationError: If neither source supplies a value.
    """
    env_value = os.environ.get(env_key)
    if value:
        if env_value:
            logger.info(
                f"Ignore environment value for {env_key}. "
                f"Use value supplied by {flag} (override)."
            )
        return value
    if env_value:
        logger.info(f"Use environment value for {env_key}.")
        return env_value
    raise ConfigurationError(
        f"{flag} is required (or set {env_key} in environment)"
    )


def build_configuration(args: Namespace, logger: object) -> RunConfiguration:
    """Turn parsed arguments into a run configuration.

    Raises:
        ConfigurationError: If an argument is invalid.
        SchedulerFatalError: If the storage client cannot be created.
    """
    access_key = resolve_credential(
        args.access_key,
        flag="--accessKey",
        env_key=ENV_ACCESS_KEY,
        logger=logger,
    )
    secret_key = resolve_credential(
        args.secret_key,
        flag="--secretKey",
        env_key=ENV_SECRET_KEY,
        logger=logger,
    )
    operation = Operation.parse(args.operation)
    if not args.bucket_name:
        raise ConfigurationError("--bucketName is required")

    settings = ClientSettings(
        access_key=access_key,
        secret_key=secret_key,
        endpoint=args.endpoint_url,
        use_http=args.use_http,
        keep_alive=args.use_keep_alive,
        signing=(
            SigningScheme.LEGACY
            if args.use_old_s3_signer else SigningScheme.V4
        ),
        region=args.region,
        backend=args.backend,
        max_connections=args.threads,
    )
    logger.info(f"Client: {settings!r}")

    return RunConfiguration(
        operation=operation,
        number=args.number,
        threads=args.threads,
        size=args.size,
        bucket=args.bucket_name,
        client=S3Client(settings),
        gzip=args.use_gzip,
        key_prefix=args.key_prefix,
        retries=args.retries,
        timeout=args.timeout,
    )


def cmd_run(args: Namespace) -> int:
    """Run the benchmark described by the CLI arguments.

    Args:
        args: Parsed CLI arguments from ``s3pt.__main__.build_parser``.

    Returns:
        Exit code: 0 all operations succeeded, 1 completed with
        errors or stopped early, 2 could not start.

    Raises:
        ConfigurationError: If the arguments describe an invalid run.
    """
    setup_logging(level=getattr(args, "log_level", None))
    logger = get_logger()

    try:
        config = build_configuration(args, logger)
    except SchedulerFatalError as exc:
        logger.error(f"Benchmark could not start: {exc}")
        return 2

    # Upload payload is built before the timed run starts
    scheduler = WorkloadScheduler(config, OperationExecutor(config))

    def signal_handler(sig: int, frame: object) -> None:
        logger.info("Received stop signal, shutting down...")
        scheduler.cancel()

    previous_handlers: dict[int, object] = {}
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGTERM, signal.SIGINT):
            previous_handlers[sig] = signal.signal(sig, signal_handler)

    stats_interval = getattr(args, "stats_interval", 0)
    stats_stop = Event()
    stats_thread: Thread | None = None

    if stats_interval and stats_interval > 0:

        def stats_reporter() -> None:
            while not stats_stop.wait(stats_interval):
                logger.info(
                    format_stats(scheduler.snapshot(), config.number)
                )

        stats_thread = Thread(target=stats_reporter, daemon=True)
        stats_thread.start()

    start = time.perf_counter()
    try:
        summary = scheduler.run()
    except SchedulerFatalError as exc:
        logger.error(f"Benchmark could not start: {exc}")
        return 2
    finally:
        if stats_thread:
            stats_stop.set()
            stats_thread.join(timeout=1)
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        config.client.close()
    total_time = time.perf_counter() - start

    report(summary, logger)
    logger.info(f"Total time = {total_time * 1000:.0f} ms")

    if summary.failures or not summary.completed:
        return 1
    return 0
