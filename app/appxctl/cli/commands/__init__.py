"""CLI commands for appxctl.

This package contains all subcommand implementations.
"""

from appxctl.cli.commands import config, probe, query, remove, reset

__all__ = ["config", "probe", "query", "remove", "reset"]
