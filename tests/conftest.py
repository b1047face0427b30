"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point all appxctl config and log paths at a temporary directory."""
    home = tmp_path / "appxctl-home"
    monkeypatch.setenv("APPXCTL_HOME", str(home))
    return home


@pytest.fixture
def mock_installed_output() -> str:
    """Get-AppxPackage records for a package installed for two users."""
    return (
        '[{"PackageFullName":"Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"InstallLocation":"C:\\\\Program Files\\\\WindowsApps\\\\'
        'Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"Sid":"S-1-5-21-1004336348-1177238915-682003330-1001","Username":"CONTOSO\\\\alice",'
        '"InstallState":"Installed"},'
        '{"PackageFullName":"Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"InstallLocation":"C:\\\\Program Files\\\\WindowsApps\\\\'
        'Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"Sid":"S-1-5-21-1004336348-1177238915-682003330-1002","Username":"CONTOSO\\\\bob",'
        '"InstallState":"Installed"}]'
    )


@pytest.fixture
def mock_system_staged_output() -> str:
    """Get-AppxPackage record for a package staged only for SYSTEM."""
    return (
        '{"PackageFullName":"Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"InstallLocation":"C:\\\\Program Files\\\\WindowsApps\\\\'
        'Microsoft.CompanyPortal_11.2.1002.0_x64__8wekyb3d8bbwe",'
        '"Sid":"S-1-5-18","Username":"NT AUTHORITY\\\\SYSTEM","InstallState":"Installed"}'
    )


@pytest.fixture
def mock_provisioned_output() -> str:
    """Get-AppxProvisionedPackage record."""
    return (
        '{"DisplayName":"Microsoft.CompanyPortal",'
        '"PackageName":"Microsoft.CompanyPortal_2022.409.807.0_neutral_~_8wekyb3d8bbwe"}'
    )


@pytest.fixture
def mock_reregistration_error() -> str:
    """Remove-AppxPackage failure payload for a stale registration."""
    return (
        '{"HResult":-2147009295,"Message":"Deployment failed with HRESULT: 0x80073CF1, '
        'Package was not found."}'
    )


@pytest.fixture
def mock_winget_list_installed() -> str:
    """winget list output when the package is installed."""
    return (
        "\r   - \r   \\ \r"
        "Name           Id           Version         Source\n"
        "---------------------------------------------------\n"
        "Company Portal 9WZDNCRFJ3PZ 11.2.1002.0     msstore\n"
    )


@pytest.fixture
def mock_winget_list_missing() -> str:
    """winget list output when the package is not installed."""
    return "\r   - \r   \\ \rNo installed package found matching input criteria.\n"
