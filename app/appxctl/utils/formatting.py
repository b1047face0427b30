"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from appxctl.core.theme import get_theme
from appxctl.models.package import PackageResult

if TYPE_CHECKING:
    from appxctl.models.package import PackageState


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

_RESULT_STYLES: dict[PackageResult, str] = {
    PackageResult.INSTALLED: "installed",
    PackageResult.NOT_INSTALLED: "not_installed",
    PackageResult.SYSTEM_STAGED: "staged",
    PackageResult.FATAL_ERROR: "error",
}


def format_result(result: PackageResult) -> str:
    """Format a package result with color markup.

    Args:
        result: Package result to format.

    Returns:
        Rich markup string.
    """
    style = _RESULT_STYLES[result]
    return f"[{style}]{result.value}[/]"


def create_users_table(state: PackageState) -> Table:
    """Create a table listing the per-account records of a package.

    Args:
        state: Package state to display.

    Returns:
        Rich Table with one row per account record.
    """
    table = Table(
        title=f"{state.name}: {format_result(state.result)}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Account", no_wrap=True)
    table.add_column("SID", style="muted")
    table.add_column("State")
    table.add_column("Package", style="muted", overflow="ellipsis")

    for record in state.records:
        if record.is_installed and not record.is_system:
            state_text = f"[installed]{record.install_state}[/]"
        elif record.is_system:
            state_text = f"[staged]{record.install_state} (system)[/]"
        else:
            state_text = f"[staged]{record.install_state}[/]"
        table.add_row(
            record.account or "-",
            record.sid or "-",
            state_text,
            record.package_full_name or "-",
        )

    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
