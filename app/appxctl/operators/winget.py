"""WinGet probe and operator implementation.

Locates a runnable winget.exe for the current (typically machine) account
and uses it to install applications in machine scope.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from appxctl.models.action import InstallerProbeResult, InstallOutcome, ProbeFailure, ProbeResult
from appxctl.operators.winget_output import is_listed, parse_version, version_key
from appxctl.utils.shell import resolve_command, run_command

logger = logging.getLogger(__name__)

InstallBy = Literal["name", "id"]

DEFAULT_WINDOWS_APPS_ROOT = Path("C:/Program Files/WindowsApps")
DEFAULT_PACKAGE_PATTERN = "Microsoft.DesktopAppInstaller_*_x64__8wekyb3d8bbwe"

# winget exit codes that mean the package is already present
_ALREADY_INSTALLED_CODES = frozenset(
    {
        0x8A15002B,  # APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE
        0x8A150061,  # APPINSTALLER_CLI_ERROR_PACKAGE_ALREADY_INSTALLED
    }
)

# Failures to run winget at all; ValueError covers undecodable output
_RUN_ERRORS = (OSError, subprocess.SubprocessError, ValueError)


@dataclass(frozen=True, slots=True)
class InstallTarget:
    """Application to install through winget.

    Attributes:
        package_id: Catalog identifier, used for list queries.
        name: Human-readable catalog name.
        source: winget source (e.g. 'msstore', 'winget').
        install_by: Whether install looks the app up by name or by id.
    """

    package_id: str
    name: str = ""
    source: str = "msstore"
    install_by: InstallBy = "name"

    def __post_init__(self) -> None:
        """Validate target data after initialization."""
        if not self.package_id:
            msg = "Package id cannot be empty"
            raise ValueError(msg)
        if self.install_by == "name" and not self.name:
            msg = "Package name is required when installing by name"
            raise ValueError(msg)

    def install_args(self) -> list[str]:
        """Return the lookup arguments for `winget install`."""
        if self.install_by == "name":
            return ["--name", self.name]
        return ["--id", self.package_id]


class WinGetProbe:
    """Probe that validates winget for the current account.

    winget can be installed for a user while failing to start under the
    SYSTEM account because of missing runtime dependencies. The probe tells
    those cases apart from winget not being installed at all.
    """

    _VERSION_TIMEOUT: float = 60.0

    def __init__(
        self,
        binary_name: str = "winget.exe",
        windows_apps_root: Path = DEFAULT_WINDOWS_APPS_ROOT,
        package_pattern: str = DEFAULT_PACKAGE_PATTERN,
    ) -> None:
        """Initialize the probe.

        Args:
            binary_name: Executable name inside the App Installer package.
            windows_apps_root: Directory holding packaged app install folders.
            package_pattern: Glob matching App Installer package folders.
        """
        self._binary_name = binary_name
        self._root = windows_apps_root
        self._pattern = package_pattern

    def find_candidates(self) -> list[Path]:
        """Find App Installer package folders, most recent first.

        Returns:
            Folders sorted descending by version, then by name.
        """
        if not self._root.is_dir():
            return []

        folders = [p for p in self._root.glob(self._pattern) if p.is_dir()]
        return sorted(folders, key=lambda p: (version_key(p.name), p.name), reverse=True)

    def probe(self) -> InstallerProbeResult:
        """Resolve winget and verify it runs.

        Returns:
            InstallerProbeResult; binary_path is set only when PASSED.
        """
        try:
            return self._probe()
        except _RUN_ERRORS as e:
            logger.error("winget probe failed: %s", e)
            return InstallerProbeResult(result=ProbeResult.FATAL_ERROR, error=str(e))

    def _probe(self) -> InstallerProbeResult:
        candidates = self.find_candidates()

        if candidates:
            binary = candidates[0] / self._binary_name
            logger.info("Selected App Installer folder %s", candidates[0])
            if not binary.is_file():
                msg = f"{self._binary_name} not found in {candidates[0]}"
                logger.error(msg)
                return InstallerProbeResult(
                    result=ProbeResult.FAILED,
                    failure=ProbeFailure.BINARY_MISSING,
                    error=msg,
                )
        else:
            resolved = resolve_command(self._binary_name)
            if resolved is None:
                msg = "App Installer (winget) is not installed"
                logger.error(msg)
                return InstallerProbeResult(
                    result=ProbeResult.FAILED,
                    failure=ProbeFailure.NOT_INSTALLED,
                    error=msg,
                )
            binary = Path(resolved)
            logger.info("Resolved %s from PATH", binary)

        try:
            result = run_command([str(binary), "--version"], timeout=self._VERSION_TIMEOUT)
        except OSError as e:
            msg = f"{binary} cannot be executed: {e}"
            logger.error(msg)
            return InstallerProbeResult(
                result=ProbeResult.FAILED,
                failure=ProbeFailure.NOT_EXECUTABLE,
                error=msg,
            )

        if not result.success:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            msg = f"{binary} --version failed: {detail}"
            logger.error(msg)
            return InstallerProbeResult(
                result=ProbeResult.FAILED,
                failure=ProbeFailure.NOT_EXECUTABLE,
                error=msg,
            )

        version = parse_version(result.stdout)
        logger.info("winget %s is runnable at %s", version or "(unknown version)", binary)
        return InstallerProbeResult(
            result=ProbeResult.PASSED,
            binary_path=str(binary),
            version=version,
        )


class WinGetOperator:
    """Operator installing applications through a probed winget binary."""

    # Timeout for winget operations (30 minutes)
    _WINGET_TIMEOUT: float = 1800.0

    def __init__(self, timeout: float | None = _WINGET_TIMEOUT) -> None:
        """Initialize the operator.

        Args:
            timeout: Timeout for each winget invocation.
        """
        self._timeout = timeout

    def is_installed(self, binary_path: str, target: InstallTarget) -> bool:
        """Check if winget lists the application as installed.

        Args:
            binary_path: Path from a passed probe.
            target: Application to check.

        Returns:
            True if listed, False if not listed or the query failed.
        """
        args = [
            binary_path,
            "list",
            "--id",
            target.package_id,
            "--source",
            target.source,
            "--accept-source-agreements",
        ]
        try:
            result = run_command(args, timeout=self._timeout)
        except _RUN_ERRORS as e:
            logger.error("winget list for %s failed: %s", target.package_id, e)
            return False

        listed = is_listed(result.stdout, target.package_id)
        logger.info("winget reports %s %s", target.package_id, "installed" if listed else "not installed")
        return listed

    def install(self, binary_path: str, target: InstallTarget) -> InstallOutcome:
        """Install an application in machine scope.

        Installing an application that is already present is a no-op for
        winget and reported as success.

        Args:
            binary_path: Path from a passed probe.
            target: Application to install.

        Returns:
            InstallOutcome. Never raises.
        """
        args = [
            binary_path,
            "install",
            *target.install_args(),
            "--accept-package-agreements",
            "--accept-source-agreements",
            "--source",
            target.source,
            "--scope",
            "machine",
        ]

        logger.info("Installing %s by %s from %s", target.package_id, target.install_by, target.source)

        try:
            result = run_command(args, timeout=self._timeout)
        except _RUN_ERRORS as e:
            logger.error("winget install for %s failed to run: %s", target.package_id, e)
            return InstallOutcome(success=False, error=str(e))

        code = result.returncode & 0xFFFFFFFF
        if result.success or code in _ALREADY_INSTALLED_CODES:
            return InstallOutcome(success=True, returncode=result.returncode)

        detail = result.stderr.strip() or result.stdout.strip() or "winget install failed"
        logger.warning("winget install for %s exited with 0x%08X", target.package_id, code)
        return InstallOutcome(success=False, returncode=result.returncode, error=detail)
