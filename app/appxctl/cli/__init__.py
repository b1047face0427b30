"""CLI package for appxctl.

This package contains the Typer application and all subcommands.
"""

from appxctl.cli.main import app

__all__ = ["app"]
