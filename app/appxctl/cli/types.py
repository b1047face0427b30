"""Shared types and utilities for CLI commands.

This module provides the option definitions and the reconciliation runner
shared by the reset and remove commands.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer

from appxctl.cli.display import print_report
from appxctl.core.config import (
    ConfigError,
    ReconcileConfig,
    load_config_or_default,
    merge_overrides,
)
from appxctl.core.logs import setup_logging
from appxctl.core.reconcile import Reconciler
from appxctl.operators.appx import AppxOperator
from appxctl.operators.winget import WinGetOperator, WinGetProbe
from appxctl.scanners.appx import AppxScanner
from appxctl.utils.formatting import print_error, print_info, print_warning

logger = logging.getLogger(__name__)


class InstallByChoice(str, Enum):
    """Lookup key for winget install."""

    NAME = "name"
    ID = "id"


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to appxctl.toml."),
]
SettleDelayOption = Annotated[
    float | None,
    typer.Option("--settle-delay", min=0, help="Seconds to wait before re-checking a present package."),
]
ResetLogOption = Annotated[
    bool | None,
    typer.Option("--reset-log/--append-log", help="Truncate the log file before this run."),
]


def build_scanner(config: ReconcileConfig) -> AppxScanner:
    """Create a scanner from configuration."""
    return AppxScanner(
        settle_delay=config.settle_delay_seconds,
        timeout=config.powershell_timeout,
    )


def build_probe(config: ReconcileConfig) -> WinGetProbe:
    """Create a winget probe from configuration."""
    return WinGetProbe(
        binary_name=config.binary_name,
        windows_apps_root=config.windows_apps_root,
        package_pattern=config.package_pattern,
    )


def build_reconciler(config: ReconcileConfig) -> Reconciler:
    """Create a reconciler wired with real components.

    Args:
        config: Effective configuration.

    Returns:
        Reconciler instance.
    """
    scanner = build_scanner(config)
    return Reconciler(
        scanner=scanner,
        operator=AppxOperator(scanner, timeout=config.powershell_timeout),
        probe=build_probe(config),
        installer=WinGetOperator(),
        max_attempts=config.max_attempts,
    )


def resolve_config(config_path: Path | None, overrides: dict[str, Any]) -> ReconcileConfig:
    """Load configuration and apply command-line overrides.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    try:
        return merge_overrides(load_config_or_default(config_path), overrides)
    except ConfigError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e


def run_reconcile(ctx: typer.Context, config: ReconcileConfig) -> None:
    """Run the reconciliation for a configuration and exit with its result.

    Args:
        ctx: Typer context carrying global options.
        config: Effective configuration.

    Raises:
        typer.Exit: With code 1 on any fatal or unresolved failure.
    """
    obj = ctx.obj or {}
    verbose = bool(obj.get("verbose", False))
    quiet = bool(obj.get("quiet", False))

    if not config.package_name:
        print_error("No package name given.")
        raise typer.Exit(code=1)

    try:
        target = config.install_target()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    try:
        log_path = setup_logging(reset=config.reset_log, verbose=verbose)
        if not quiet:
            print_info(f"Logging to {log_path}")
    except (RuntimeError, OSError) as e:
        print_warning(f"Log file unavailable, continuing without it: {e}")

    report = build_reconciler(config).run(config.package_name, target=target)
    logger.info("Finished %s with exit code %d", config.package_name, report.exit_code)

    print_report(report, quiet=quiet)

    if report.exit_code:
        raise typer.Exit(code=report.exit_code)
