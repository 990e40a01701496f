"""CLI commands for s3pt."""

from __future__ import annotations

from s3pt.cli.run import cmd_run

__all__ = [
    "cmd_run",
]
