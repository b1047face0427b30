"""Query command implementation.

Shows the per-user and provisioned state of an AppX package.
"""

from typing import Annotated

import typer

from appxctl.cli.display import print_provisioned
from appxctl.cli.types import ConfigOption, SettleDelayOption, build_scanner, resolve_config
from appxctl.utils.formatting import console, create_users_table, print_error


def query_package(
    name: Annotated[
        str,
        typer.Argument(help="AppX package name."),
    ],
    confirm: Annotated[
        bool,
        typer.Option(
            "--confirm/--no-confirm",
            help="Re-check a present package after the settle delay.",
        ),
    ] = True,
    settle_delay: SettleDelayOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Show the install state of a package across all user accounts."""
    config = resolve_config(config_path, {"settle_delay_seconds": settle_delay})
    scanner = build_scanner(config)

    state = scanner.query(name, confirm=confirm)
    if state.is_fatal:
        print_error(f"Query failed: {state.error}")
        raise typer.Exit(code=1)

    if state.records:
        console.print(create_users_table(state))
    else:
        console.print(f"{name}: [not_installed]not installed[/]")

    provisioned = scanner.query_provisioned(name)
    print_provisioned(provisioned)
    if provisioned.is_fatal:
        raise typer.Exit(code=1)
