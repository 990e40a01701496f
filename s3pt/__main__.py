#!/usr/bin/env python3
"""Entry point for s3pt package.

Usage::

    s3pt -n 1000 -t 8 --size 1M --bucketName bench --accessKey ... \\
        --secretKey ...
    s3pt -n 1000 -t 8 --operation DOWNLOAD --bucketName bench
    python -m s3pt --endpointUrl rgw.local:7480 --http --useOldS3Signer ...
"""

from __future__ import annotations

import argparse
import sys

from s3pt import __version__
from s3pt.config import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_OPERATION,
    DEFAULT_RETRIES,
    DEFAULT_S3_ENDPOINT,
    DEFAULT_SIZE,
    DEFAULT_STATS_INTERVAL,
    DEFAULT_THREADS,
    ENV_ACCESS_KEY,
    ENV_SECRET_KEY,
    S3_BACKEND,
    S3_REGION,
)
from s3pt.errors import ConfigurationError
from s3pt.utils import parse_size


def _size_arg(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid integer: {value!r}"
        ) from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="s3pt",
        description="S3 performance test: run N uploads or downloads "
        "of a fixed size against an S3-compatible endpoint.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Credentials:
  --accessKey / --secretKey may be omitted when {ENV_ACCESS_KEY} /
  {ENV_SECRET_KEY} are set; a flag always overrides the environment.

Object keys:
  Operation i reads or writes <keyPrefix><i, zero-padded to 10 digits>,
  so an UPLOAD run seeds the objects a later DOWNLOAD run reads.

Examples:
  s3pt -n 1000 -t 16 --size 1M --bucketName bench
  s3pt -n 1000 -t 16 --operation DOWNLOAD --bucketName bench
  s3pt -n 100 --endpointUrl rgw.local:7480 --http --useOldS3Signer \\
      --bucketName bench
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-t", "--threads",
        type=_positive_int,
        default=DEFAULT_THREADS,
        help="number of threads (default: %(default)s)",
    )
    parser.add_argument(
        "-n", "--number",
        type=_positive_int,
        required=True,
        help="number of operations",
    )
    parser.add_argument(
        "--size",
        type=_size_arg,
        default=DEFAULT_SIZE,
        help="file size (e.g. for UPLOAD); supported units: B, K, M "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--accessKey",
        dest="access_key",
        default=None,
        help=f"access key ID; also possible to set {ENV_ACCESS_KEY} "
        f"in environment",
    )
    parser.add_argument(
        "--secretKey",
        dest="secret_key",
        default=None,
        help=f"secret access key; also possible to set {ENV_SECRET_KEY} "
        f"in environment",
    )
    parser.add_argument(
        "--endpointUrl",
        dest="endpoint_url",
        default=DEFAULT_S3_ENDPOINT,
        help="endpoint url (default: %(default)s)",
    )
    parser.add_argument(
        "--bucketName",
        dest="bucket_name",
        default=None,
        help="name of bucket",
    )
    parser.add_argument(
        "--operation",
        default=DEFAULT_OPERATION,
        help="operation: UPLOAD or DOWNLOAD (default: %(default)s)",
    )
    parser.add_argument(
        "--http",
        dest="use_http",
        action="store_true",
        help="use http instead of https",
    )
    parser.add_argument(
        "--gzip",
        dest="use_gzip",
        action="store_true",
        help="use gzip",
    )
    parser.add_argument(
        "--useOldS3Signer",
        dest="use_old_s3_signer",
        action="store_true",
        help="use old S3 Signer; currently required for Ceph / radosgw "
        "because it lacks support for SigV4 signing",
    )
    parser.add_argument(
        "--keepAlive",
        dest="use_keep_alive",
        action="store_true",
        help="use TCP keep alive",
    )

    parser.add_argument(
        "--keyPrefix",
        dest="key_prefix",
        default=DEFAULT_KEY_PREFIX,
        help="prefix of derived object keys (default: %(default)s)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help="retries per operation for transient errors "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="stop the run after this many seconds",
    )
    parser.add_argument(
        "--backend",
        choices=["boto3", "minio"],
        default=S3_BACKEND,
        help="S3 client library (default: %(default)s)",
    )
    parser.add_argument(
        "--region",
        default=S3_REGION,
        help="region used for signing (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    parser.add_argument(
        "--stats-interval",
        type=int,
        default=DEFAULT_STATS_INTERVAL,
        help="Stats logging interval in seconds (0 = off)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run the benchmark.

    Returns:
        0 when every operation succeeded, 1 when the benchmark completed
        with errors or was stopped early, 2 when it could not start.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    from s3pt.cli import cmd_run

    try:
        return cmd_run(args)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
