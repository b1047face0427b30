"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from appxctl import __version__
from appxctl.cli.commands import config, probe, query, remove, reset

# Create main Typer app
app = typer.Typer(
    name="appxctl",
    help="Remove, deprovision and reinstall AppX packages on Windows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"appxctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Record verbose events in the log file.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only print errors.",
        ),
    ] = False,
) -> None:
    """appxctl - AppX package reconciliation for managed Windows devices.

    Removes a package for every user account, removes its provisioning
    record and optionally reinstalls it through winget with verification.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command(name="reset")(reset.reset_package)
app.command(name="remove")(remove.remove_package)
app.command(name="query")(query.query_package)
app.command(name="probe")(probe.probe_manager)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
