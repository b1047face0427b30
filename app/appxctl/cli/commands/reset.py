"""Reset command implementation.

Removes an AppX package for all users, removes its provisioning record
and reinstalls the application through winget until the package and
winget both report it installed.
"""

from typing import Annotated

import typer

from appxctl.cli.types import (
    ConfigOption,
    InstallByChoice,
    ResetLogOption,
    SettleDelayOption,
    resolve_config,
    run_reconcile,
)


def reset_package(
    ctx: typer.Context,
    name: Annotated[
        str | None,
        typer.Argument(help="AppX package name, e.g. Microsoft.CompanyPortal."),
    ] = None,
    winget_id: Annotated[
        str | None,
        typer.Option("--winget-id", "-i", help="winget catalog identifier."),
    ] = None,
    winget_name: Annotated[
        str | None,
        typer.Option("--winget-name", "-n", help="winget catalog name."),
    ] = None,
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="winget source (default: msstore)."),
    ] = None,
    install_by: Annotated[
        InstallByChoice | None,
        typer.Option("--install-by", help="Install lookup key: name or id.", case_sensitive=False),
    ] = None,
    binary_name: Annotated[
        str | None,
        typer.Option("--binary-name", help="winget executable name."),
    ] = None,
    max_attempts: Annotated[
        int | None,
        typer.Option("--max-attempts", "-m", min=1, help="Install attempts (default: 10)."),
    ] = None,
    settle_delay: SettleDelayOption = None,
    reset_log: ResetLogOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Remove an AppX package and reinstall it through winget.

    Steps performed:
      - Remove the package for all users (re-registering it if required)
      - Remove the machine-wide provisioning record
      - Verify winget runs under the current account
      - Install and verify, retrying up to --max-attempts times

    Exits with code 1 on any fatal or unresolved failure.

    Examples:
        appxctl reset Microsoft.CompanyPortal -i 9WZDNCRFJ3PZ -n "Company Portal"
        appxctl reset Microsoft.CompanyPortal --install-by id -i 9WZDNCRFJ3PZ
    """
    config = resolve_config(
        config_path,
        {
            "package_name": name,
            "install": True,
            "winget_id": winget_id,
            "winget_name": winget_name,
            "winget_source": source,
            "install_by": install_by.value if install_by is not None else None,
            "binary_name": binary_name,
            "max_attempts": max_attempts,
            "settle_delay_seconds": settle_delay,
            "reset_log": reset_log,
        },
    )
    run_reconcile(ctx, config)
