"""Configuration — All tunables in one place.

Configuration is loaded from these sources (in priority order):
    1. Command-line flags (see ``s3pt.__main__``)
    2. Environment variables
    3. ``.env`` file in current working directory
    4. ``.env`` file in ``~/.s3pt/``
    5. Built-in defaults
"""

from __future__ import annotations

import os
from pathlib import Path


# ---------------------------------------------------------------------------
# Stdlib .env file loader (no external dependency)
# ---------------------------------------------------------------------------

def _load_dotenv() -> None:
    """Load KEY=VALUE pairs from a .env file into ``os.environ``.

    Searches the current working directory first, then ``~/.s3pt/``.
    Only sets variables that are not already present in the
    environment (env vars take priority).
    """
    candidates = [
        Path.cwd() / ".env",
        Path.home() / ".s3pt" / ".env",
    ]
    for env_path in candidates:
        if env_path.is_file():
            _parse_env_file(env_path)
            return


def _parse_env_file(path: Path) -> None:
    """Parse a .env file and inject into ``os.environ``."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if (
                    len(value) >= 2
                    and value[0] == value[-1]
                    and value[0] in ('"', "'")
                ):
                    value = value[1:-1]
                if key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_dotenv()


# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------
DEFAULT_LOG_LEVEL = os.environ.get("S3PT_LOG_LEVEL", "INFO").upper()
DEFAULT_STATS_INTERVAL = 0  # seconds, 0 = only the final summary

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
ENV_ACCESS_KEY = "AWS_ACCESS_KEY"
ENV_SECRET_KEY = "AWS_SECRET_KEY"

# ---------------------------------------------------------------------------
# S3 Connection
# ---------------------------------------------------------------------------
DEFAULT_S3_ENDPOINT = "s3.amazonaws.com"
S3_REGION = os.environ.get("AWS_REGION", "us-east-1")
S3_BACKEND = os.environ.get("S3PT_BACKEND", "boto3")
S3_VERIFY_SSL = os.environ.get("S3_VERIFY_SSL", "true").lower() in (
    "true",
    "1",
    "yes",
)
CONNECT_TIMEOUT = 10  # seconds
READ_TIMEOUT = 300  # seconds

# ---------------------------------------------------------------------------
# Workload Defaults
# ---------------------------------------------------------------------------
DEFAULT_THREADS = 1
DEFAULT_SIZE = 64 * 1024  # 64K
DEFAULT_OPERATION = "UPLOAD"
DEFAULT_KEY_PREFIX = os.environ.get("S3PT_KEY_PREFIX", "s3pt/")
KEY_INDEX_WIDTH = 10

# Deterministic payload filler
PAYLOAD_SEED = 0x5337
PAYLOAD_BLOCK_SIZE = 64 * 1024

# ---------------------------------------------------------------------------
# Retry configuration (disabled unless --retries is given)
# ---------------------------------------------------------------------------
DEFAULT_RETRIES = 0
RETRY_BASE_DELAY = 0.1  # seconds
RETRY_MAX_DELAY = 30  # seconds
