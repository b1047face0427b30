"""Unit tests for the query and probe commands."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from appxctl.cli.main import app
from appxctl.models.action import InstallerProbeResult, ProbeFailure, ProbeResult
from appxctl.models.package import (
    PackageResult,
    PackageState,
    ProvisionedPackageState,
    ProvisionedResult,
    UserRecord,
)
from typer.testing import CliRunner

runner = CliRunner()

NAME = "Microsoft.CompanyPortal"
NOT_PROVISIONED = ProvisionedPackageState(display_name=NAME, result=ProvisionedResult.NOT_INSTALLED)


@pytest.fixture
def mock_scanner() -> Iterator[MagicMock]:
    """Patch build_scanner with a mock scanner."""
    with patch("appxctl.cli.commands.query.build_scanner") as build:
        build.return_value.query_provisioned.return_value = NOT_PROVISIONED
        yield build.return_value


class TestQueryCommand:
    """Tests for appxctl query."""

    def test_installed_package(self, mock_scanner: MagicMock) -> None:
        """An installed package is shown per account."""
        mock_scanner.query.return_value = PackageState(
            name=NAME,
            result=PackageResult.INSTALLED,
            users=("CONTOSO\\alice",),
            records=(
                UserRecord(
                    sid="S-1-5-21-1-2-3-1001",
                    username="CONTOSO\\alice",
                    install_state="Installed",
                ),
            ),
        )

        result = runner.invoke(app, ["query", NAME])

        assert result.exit_code == 0
        assert "alice" in result.stdout
        assert "Provisioned: no" in result.stdout
        mock_scanner.query.assert_called_once_with(NAME, confirm=True)

    def test_absent_package(self, mock_scanner: MagicMock) -> None:
        """An absent package is reported as not installed."""
        mock_scanner.query.return_value = PackageState(name=NAME, result=PackageResult.NOT_INSTALLED)

        result = runner.invoke(app, ["query", NAME, "--no-confirm"])

        assert result.exit_code == 0
        assert "not installed" in result.stdout
        mock_scanner.query.assert_called_once_with(NAME, confirm=False)

    def test_provisioned_package(self, mock_scanner: MagicMock) -> None:
        """A provisioning record is shown by identifier."""
        mock_scanner.query.return_value = PackageState(name=NAME, result=PackageResult.NOT_INSTALLED)
        mock_scanner.query_provisioned.return_value = ProvisionedPackageState(
            display_name=NAME,
            result=ProvisionedResult.INSTALLED,
            package_identifier="Microsoft.CompanyPortal_1.0.0.0_neutral_~_8wekyb3d8bbwe",
        )

        result = runner.invoke(app, ["query", NAME])

        assert result.exit_code == 0
        assert "Microsoft.CompanyPortal_1.0.0.0" in result.stdout

    def test_fatal_query_exits_1(self, mock_scanner: MagicMock) -> None:
        """A fatal query exits 1 without querying provisioning."""
        mock_scanner.query.return_value = PackageState(
            name=NAME,
            result=PackageResult.FATAL_ERROR,
            error="Access is denied.",
        )

        result = runner.invoke(app, ["query", NAME])

        assert result.exit_code == 1
        assert "Access is denied." in result.output
        mock_scanner.query_provisioned.assert_not_called()

    def test_settle_delay_option(self) -> None:
        """--settle-delay reaches the scanner configuration."""
        with patch("appxctl.cli.commands.query.build_scanner") as build:
            build.return_value.query.return_value = PackageState(
                name=NAME, result=PackageResult.NOT_INSTALLED
            )
            build.return_value.query_provisioned.return_value = NOT_PROVISIONED

            runner.invoke(app, ["query", NAME, "--settle-delay", "5"])

        assert build.call_args.args[0].settle_delay_seconds == 5


class TestProbeCommand:
    """Tests for appxctl probe."""

    def test_probe_passed(self) -> None:
        """A runnable winget exits 0."""
        passed = InstallerProbeResult(
            result=ProbeResult.PASSED,
            binary_path="C:\\Apps\\winget.exe",
            version="1.22.10861",
        )
        with patch("appxctl.cli.commands.probe.build_probe") as build:
            build.return_value.probe.return_value = passed
            result = runner.invoke(app, ["probe"])

        assert result.exit_code == 0
        assert "1.22.10861" in result.stdout

    def test_probe_failed(self) -> None:
        """A missing winget exits 1."""
        failed = InstallerProbeResult(
            result=ProbeResult.FAILED,
            failure=ProbeFailure.NOT_INSTALLED,
            error="App Installer not found",
        )
        with patch("appxctl.cli.commands.probe.build_probe") as build:
            build.return_value.probe.return_value = failed
            result = runner.invoke(app, ["probe"])

        assert result.exit_code == 1
        assert "App Installer not found" in result.output

    def test_binary_name_option(self) -> None:
        """--binary-name reaches the probe configuration."""
        with patch("appxctl.cli.commands.probe.build_probe") as build:
            build.return_value.probe.return_value = InstallerProbeResult(
                result=ProbeResult.FAILED,
                failure=ProbeFailure.BINARY_MISSING,
            )
            runner.invoke(app, ["probe", "--binary-name", "winget-preview.exe"])

        assert build.call_args.args[0].binary_name == "winget-preview.exe"
