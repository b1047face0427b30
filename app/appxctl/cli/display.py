"""Shared Rich display functions for reconciliation results.

Provides table builders and summary printers used by the reset and
remove commands.
"""

from rich.table import Table

from appxctl.models.action import InstallerProbeResult
from appxctl.models.package import ProvisionedPackageState
from appxctl.models.report import ReconcileReport
from appxctl.utils.formatting import console, format_result, print_error, print_success


def create_report_table(report: ReconcileReport) -> Table:
    """Create a Rich table summarizing a reconciliation run.

    Args:
        report: Report returned by the reconciler.

    Returns:
        Rich Table with one row per reported fact.
    """
    table = Table(
        title=f"Reconciliation: {report.package}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Field", style="muted", no_wrap=True)
    table.add_column("Value")

    stages = " -> ".join(stage.value for stage in report.stages)
    table.add_row("Stages", f"[muted]{stages}[/muted]")
    table.add_row("Install attempts", str(report.attempts))
    table.add_row("Installer runs", str(report.installer_invocations))
    table.add_row("Converged", "[success]yes[/success]" if report.converged else "[muted]no[/muted]")
    if report.final_state is not None:
        table.add_row("Package state", format_result(report.final_state.result))

    return table


def create_errors_table(report: ReconcileReport) -> Table:
    """Create a Rich table listing the failures of a run.

    Args:
        report: Report with at least one error.

    Returns:
        Rich Table with Kind and Message columns.
    """
    table = Table(
        title="Errors",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Kind", width=20)
    table.add_column("Message")

    for error in report.errors:
        table.add_row(f"[error]{error.kind.value}[/error]", error.message)

    return table


def print_report(report: ReconcileReport, *, quiet: bool = False) -> None:
    """Print a reconciliation report with its summary line.

    In quiet mode only failures are printed: the errors table and the
    error count.

    Args:
        report: Report returned by the reconciler.
        quiet: Skip the report table and the success line.
    """
    if not quiet:
        console.print(create_report_table(report))

    if report.failed:
        console.print(create_errors_table(report))
        print_error(f"{report.package}: {len(report.errors)} error(s) during reconciliation.")
    elif not quiet:
        print_success(f"{report.package}: reconciliation completed successfully.")


def print_provisioned(state: ProvisionedPackageState) -> None:
    """Print the provisioning record of a package.

    Args:
        state: Provisioned package state.
    """
    if state.is_fatal:
        print_error(f"Provisioned query failed: {state.error}")
    elif state.is_provisioned:
        console.print(f"Provisioned: [warning]{state.package_identifier}[/warning]")
    else:
        console.print("Provisioned: [muted]no[/muted]")


def print_probe(result: InstallerProbeResult) -> None:
    """Print the result of a package manager probe.

    Args:
        result: Probe result.
    """
    if result.passed:
        print_success(f"winget {result.version or '(unknown version)'} is runnable: {result.binary_path}")
    else:
        print_error(f"winget probe {result.result.value} ({result.failure.value}): {result.error}")
