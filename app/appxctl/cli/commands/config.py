"""Config commands.

Shows or writes the appxctl.toml configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from appxctl.cli.types import ConfigOption
from appxctl.core.config import (
    ConfigError,
    ReconcileConfig,
    config_to_dict,
    load_config_or_default,
    save_config,
)
from appxctl.core.paths import ensure_config_dir, get_config_path
from appxctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show(config_path: ConfigOption = None) -> None:
    """Print the effective configuration as TOML."""
    try:
        config = load_config_or_default(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option("--path", "-p", help="Where to write the file."),
    ] = None,
    package_name: Annotated[
        str | None,
        typer.Option("--package", help="AppX package name to store."),
    ] = None,
    winget_id: Annotated[
        str | None,
        typer.Option("--winget-id", help="winget catalog identifier to store."),
    ] = None,
    winget_name: Annotated[
        str | None,
        typer.Option("--winget-name", help="winget catalog name to store."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing file."),
    ] = False,
) -> None:
    """Write a configuration file with default values."""
    if path is None:
        try:
            ensure_config_dir()
        except RuntimeError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
    target = path or get_config_path()

    if target.exists() and not force:
        print_error(f"Config already exists: {target}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    config = ReconcileConfig(
        package_name=package_name,
        winget_id=winget_id,
        winget_name=winget_name,
    )

    try:
        saved = save_config(config, target)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
