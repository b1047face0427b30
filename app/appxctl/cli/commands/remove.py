"""Remove command implementation.

Removes an AppX package for all users and its provisioning record without
reinstalling it.
"""

from typing import Annotated

import typer

from appxctl.cli.types import (
    ConfigOption,
    ResetLogOption,
    SettleDelayOption,
    resolve_config,
    run_reconcile,
)


def remove_package(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Argument(help="AppX package name, e.g. Microsoft.BingNews."),
    ] = None,
    settle_delay: SettleDelayOption = None,
    reset_log: ResetLogOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Remove an AppX package for all users and deprovision it.

    Examples:
        appxctl remove Microsoft.BingNews
        appxctl remove Microsoft.BingNews --settle-delay 0
    """
    config = resolve_config(
        config_path,
        {
            "package_name": name,
            "install": False,
            "settle_delay_seconds": settle_delay,
            "reset_log": reset_log,
        },
    )
    run_reconcile(ctx, config)
