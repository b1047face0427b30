"""Probe command implementation.

Checks that winget is installed and runnable under the current account.
"""

from typing import Annotated

import typer

from appxctl.cli.display import print_probe
from appxctl.cli.types import ConfigOption, build_probe, resolve_config


def probe_manager(
    binary_name: Annotated[
        str | None,
        typer.Option("--binary-name", help="winget executable name."),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Check that winget is installed and runs under this account."""
    config = resolve_config(config_path, {"binary_name": binary_name})

    result = build_probe(config).probe()
    print_probe(result)

    if not result.passed:
        raise typer.Exit(code=1)
