"""AppX package scanner implementation.

Queries per-user and provisioned AppX package state through the
PowerShell Appx cmdlets.
"""

import logging
import subprocess
import time
from collections.abc import Callable
from typing import Any

from appxctl.models.package import (
    PackageResult,
    PackageState,
    ProvisionedPackageState,
    ProvisionedResult,
    UserRecord,
    classify_records,
)
from appxctl.models.retry import DEFAULT_SETTLE_DELAY_SECONDS
from appxctl.utils.shell import (
    POWERSHELL,
    command_exists,
    parse_json_records,
    ps_quote,
    run_powershell,
)

logger = logging.getLogger(__name__)

# One JSON record per (package, account) pair. Packages without any
# PackageUserInformation are emitted once with an empty account.
_QUERY_SCRIPT = """\
$ErrorActionPreference = 'Stop'
$records = foreach ($pkg in @(Get-AppxPackage -AllUsers -Name {name})) {{
    $users = @($pkg.PackageUserInformation)
    if ($users.Count -eq 0) {{
        [pscustomobject]@{{
            PackageFullName = $pkg.PackageFullName
            InstallLocation = $pkg.InstallLocation
            Sid = ''
            Username = ''
            InstallState = 'Staged'
        }}
    }}
    foreach ($u in $users) {{
        [pscustomobject]@{{
            PackageFullName = $pkg.PackageFullName
            InstallLocation = $pkg.InstallLocation
            Sid = [string]$u.UserSecurityId.Sid
            Username = [string]$u.UserSecurityId.Username
            InstallState = [string]$u.InstallState
        }}
    }}
}}
@($records) | ConvertTo-Json -Compress -Depth 3
"""

_PROVISIONED_SCRIPT = """\
$ErrorActionPreference = 'Stop'
@(Get-AppxProvisionedPackage -Online | Where-Object {{ $_.DisplayName -eq {name} }}) |
    Select-Object DisplayName, PackageName |
    ConvertTo-Json -Compress
"""

# Errors that mean "could not even ask", as opposed to "package absent"
_QUERY_ERRORS = (RuntimeError, ValueError, OSError, subprocess.SubprocessError)


class AppxScanner:
    """Scanner for AppX packages across all user accounts.

    Package managers on Windows can report a package as present while it is
    still being torn down after a failed staging. A present result is
    therefore re-queried after a settle delay and only the second answer is
    trusted.

    Example:
        >>> scanner = AppxScanner(settle_delay=30)
        >>> state = scanner.query("Microsoft.CompanyPortal")
        >>> state.result
        <PackageResult.INSTALLED: 'installed'>
    """

    def __init__(
        self,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        timeout: float | None = 300.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the scanner.

        Args:
            settle_delay: Seconds to wait before re-confirming a present result.
            timeout: Timeout for each PowerShell invocation.
            sleep: Blocking sleep function (injectable for tests).
        """
        self._settle_delay = settle_delay
        self._timeout = timeout
        self._sleep = sleep

    @property
    def settle_delay(self) -> float:
        """Return the settle delay in seconds."""
        return self._settle_delay

    def wait(self, seconds: float) -> None:
        """Block for a settle period using the scanner's sleep function."""
        if seconds > 0:
            logger.info("Waiting %ss for package operations to settle", seconds)
            self._sleep(seconds)

    def is_available(self) -> bool:
        """Check if PowerShell is available."""
        return command_exists(POWERSHELL)

    def query(self, name: str, confirm: bool = True) -> PackageState:
        """Query the state of a package across all user accounts.

        Args:
            name: Package name (e.g. 'Microsoft.CompanyPortal').
            confirm: If True, re-query a present result after the settle delay.

        Returns:
            Fresh PackageState. FATAL_ERROR if the query itself failed.
        """
        state = self._query_once(name)

        if confirm and state.is_present:
            logger.info(
                "%s reported %s, re-checking in %ss",
                name,
                state.result.value,
                self._settle_delay,
            )
            self._sleep(self._settle_delay)
            state = self._query_once(name)

        logger.info("%s: %s (users: %s)", name, state.result.value, ", ".join(state.users) or "-")
        return state

    def query_provisioned(self, name: str) -> ProvisionedPackageState:
        """Query the machine-wide provisioning record of a package.

        Args:
            name: Display name of the provisioned package.

        Returns:
            ProvisionedPackageState. FATAL_ERROR if the query itself failed.
        """
        try:
            result = run_powershell(
                _PROVISIONED_SCRIPT.format(name=ps_quote(name)),
                timeout=self._timeout,
            )
            if not result.success:
                msg = f"Get-AppxProvisionedPackage failed: {result.stderr.strip()}"
                raise RuntimeError(msg)
            rows = parse_json_records(result.stdout)
        except _QUERY_ERRORS as e:
            logger.error("Provisioned package query for %s failed: %s", name, e)
            return ProvisionedPackageState(
                display_name=name,
                result=ProvisionedResult.FATAL_ERROR,
                error=str(e),
            )

        if not rows:
            logger.info("%s: no provisioning record", name)
            return ProvisionedPackageState(display_name=name, result=ProvisionedResult.NOT_INSTALLED)

        row = rows[0]
        identifier = str(row.get("PackageName") or "")
        logger.info("%s: provisioned as %s", name, identifier)
        return ProvisionedPackageState(
            display_name=str(row.get("DisplayName") or name),
            result=ProvisionedResult.INSTALLED,
            package_identifier=identifier,
        )

    def _query_once(self, name: str) -> PackageState:
        """Run a single package query without settle confirmation.

        Args:
            name: Package name.

        Returns:
            PackageState built from the query output.
        """
        try:
            result = run_powershell(
                _QUERY_SCRIPT.format(name=ps_quote(name)),
                timeout=self._timeout,
            )
            if not result.success:
                msg = f"Get-AppxPackage failed: {result.stderr.strip()}"
                raise RuntimeError(msg)
            rows = parse_json_records(result.stdout)
        except _QUERY_ERRORS as e:
            logger.error("Package query for %s failed: %s", name, e)
            return PackageState(name=name, result=PackageResult.FATAL_ERROR, error=str(e))

        return self._build_state(name, rows)

    def _build_state(self, name: str, rows: list[dict[str, Any]]) -> PackageState:
        """Build a PackageState from query records.

        Args:
            name: Package name.
            rows: Decoded JSON records.

        Returns:
            Classified PackageState.
        """
        records = tuple(self._parse_record(row) for row in rows)

        users: list[str] = []
        for record in records:
            account = record.account
            if account and account not in users:
                users.append(account)

        locations: list[str] = []
        for row in rows:
            location = str(row.get("InstallLocation") or "")
            if location and location not in locations:
                locations.append(location)

        return PackageState(
            name=name,
            result=classify_records(records),
            users=tuple(users),
            records=records,
            install_locations=tuple(locations),
        )

    @staticmethod
    def _parse_record(row: dict[str, Any]) -> UserRecord:
        """Parse a single JSON record into a UserRecord."""
        return UserRecord(
            sid=str(row.get("Sid") or ""),
            username=str(row.get("Username") or ""),
            install_state=str(row.get("InstallState") or ""),
            package_full_name=str(row.get("PackageFullName") or ""),
        )
