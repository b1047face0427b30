"""Unit tests for shared display functions."""

import io

from appxctl.cli.display import (
    create_errors_table,
    create_report_table,
    print_probe,
    print_report,
)
from appxctl.core.theme import get_theme
from appxctl.models.action import InstallerProbeResult, ProbeResult
from appxctl.models.package import PackageResult, PackageState
from appxctl.models.report import ErrorKind, ReconcileReport, ReconcileStage, RunError
from rich.console import Console

NAME = "Microsoft.CompanyPortal"


def _report(*errors: RunError) -> ReconcileReport:
    return ReconcileReport(
        package=NAME,
        stage=ReconcileStage.DONE,
        stages=(ReconcileStage.START, ReconcileStage.PACKAGE_REMOVED, ReconcileStage.DONE),
        errors=errors,
        attempts=2,
        installer_invocations=2,
        converged=not errors,
        final_state=PackageState(name=NAME, result=PackageResult.SYSTEM_STAGED),
    )


def _capture_console_output(func: object, *args: object, **kwargs: object) -> str:
    """Capture Rich output by temporarily replacing both consoles."""
    import appxctl.cli.display as display_mod
    import appxctl.utils.formatting as fmt_mod

    buf = io.StringIO()
    test_console = Console(theme=get_theme(), file=buf, color_system=None, width=200)

    originals = (display_mod.console, fmt_mod.console, fmt_mod.err_console)
    display_mod.console = test_console
    fmt_mod.console = test_console
    fmt_mod.err_console = test_console
    try:
        func(*args, **kwargs)  # type: ignore[operator]
    finally:
        display_mod.console, fmt_mod.console, fmt_mod.err_console = originals

    return buf.getvalue()


class TestCreateReportTable:
    """Tests for create_report_table."""

    def test_title_and_rows(self) -> None:
        """The report table carries the package name and one row per fact."""
        table = create_report_table(_report())

        assert table.title == f"Reconciliation: {NAME}"
        assert table.row_count == 5

    def test_without_final_state(self) -> None:
        """The package state row is skipped when no state was observed."""
        report = ReconcileReport(package=NAME, stage=ReconcileStage.DONE)

        assert create_report_table(report).row_count == 4


class TestCreateErrorsTable:
    """Tests for create_errors_table."""

    def test_one_row_per_error(self) -> None:
        """Each recorded error becomes a row."""
        report = _report(
            RunError(kind=ErrorKind.REMOVAL, message="still present"),
            RunError(kind=ErrorKind.CONVERGENCE, message="gave up"),
        )

        assert create_errors_table(report).row_count == 2


class TestPrintReport:
    """Tests for print_report."""

    def test_success_summary(self) -> None:
        """A clean report prints the success line."""
        output = _capture_console_output(print_report, _report())

        assert "reconciliation completed successfully" in output
        assert "start -> package_removed -> done" in output

    def test_failure_summary(self) -> None:
        """A failed report prints the errors and a count."""
        output = _capture_console_output(
            print_report,
            _report(RunError(kind=ErrorKind.PROVISIONED, message="denied")),
        )

        assert "provisioned" in output
        assert "1 error(s)" in output
        assert "system_staged" in output

    def test_quiet_success_prints_nothing(self) -> None:
        """Quiet mode prints nothing for a clean report."""
        output = _capture_console_output(print_report, _report(), quiet=True)

        assert output == ""

    def test_quiet_failure_prints_errors_only(self) -> None:
        """Quiet mode keeps the errors but drops the report table."""
        output = _capture_console_output(
            print_report,
            _report(RunError(kind=ErrorKind.REMOVAL, message="still present")),
            quiet=True,
        )

        assert "still present" in output
        assert "1 error(s)" in output
        assert "Reconciliation:" not in output


class TestPrintProbe:
    """Tests for print_probe."""

    def test_passed(self) -> None:
        """A passing probe prints the binary path."""
        result = InstallerProbeResult(result=ProbeResult.PASSED, binary_path="C:\\winget.exe", version="1.9")

        output = _capture_console_output(print_probe, result)

        assert "winget 1.9 is runnable" in output
