"""AppX package operator implementation.

Removes packages for all accounts, re-registers stale package manifests
and removes machine-wide provisioning records via PowerShell.
"""

import logging
import subprocess

from appxctl.models.action import (
    ProvisionedRemovalOutcome,
    RegistrationOutcome,
    RemovalOutcome,
    RemovalReason,
    RemovalResult,
)
from appxctl.models.package import PackageState
from appxctl.operators.errors import classify_hresult
from appxctl.scanners.appx import AppxScanner
from appxctl.utils.shell import CommandResult, parse_json_records, ps_quote, run_powershell

logger = logging.getLogger(__name__)

# Failures are reported as a single {HResult, Message} JSON object on stdout
_ERROR_HANDLER = """\
}} catch {{
    [pscustomobject]@{{
        HResult = $_.Exception.HResult
        Message = $_.Exception.Message
    }} | ConvertTo-Json -Compress
    exit 1
}}
"""

_REMOVE_SCRIPT = (
    """\
$ErrorActionPreference = 'Stop'
try {{
    foreach ($pkg in @(Get-AppxPackage -AllUsers -Name {name})) {{
        Remove-AppxPackage -Package $pkg.PackageFullName -AllUsers
    }}
"""
    + _ERROR_HANDLER
)

_REGISTER_SCRIPT = (
    """\
$ErrorActionPreference = 'Stop'
try {{
    foreach ($location in @({locations})) {{
        $manifest = Join-Path $location 'AppxManifest.xml'
        Add-AppxPackage -Register $manifest -DisableDevelopmentMode -ForceApplicationShutdown
    }}
"""
    + _ERROR_HANDLER
)

_REMOVE_PROVISIONED_SCRIPT = (
    """\
$ErrorActionPreference = 'Stop'
try {{
    Remove-AppxProvisionedPackage -Online -PackageName {identifier} | Out-Null
"""
    + _ERROR_HANDLER
)

# Failures to run a script at all; ValueError covers undecodable or malformed output
_RUN_ERRORS = (OSError, subprocess.SubprocessError, ValueError)


class CmdletError(RuntimeError):
    """Raised when a deployment cmdlet reports a failure.

    Attributes:
        hresult: HRESULT reported by the cmdlet, if any.
    """

    def __init__(self, message: str, hresult: int | None = None) -> None:
        super().__init__(message)
        self.hresult = hresult


class AppxOperator:
    """Operator for AppX packages.

    Every removal is followed by an independent query: a removal call that
    returns without error is not trusted on its own.

    Attributes:
        scanner: Scanner used for post-operation verification.
    """

    # Timeout for deployment operations (10 minutes)
    _DEPLOY_TIMEOUT: float = 600.0

    def __init__(self, scanner: AppxScanner, timeout: float | None = _DEPLOY_TIMEOUT) -> None:
        """Initialize the operator.

        Args:
            scanner: Scanner used to confirm removal results.
            timeout: Timeout for each PowerShell invocation.
        """
        self._scanner = scanner
        self._timeout = timeout

    @property
    def scanner(self) -> AppxScanner:
        """Return the verification scanner."""
        return self._scanner

    def remove(self, name: str) -> RemovalOutcome:
        """Remove a package for all user accounts.

        Args:
            name: Package name, previously confirmed present.

        Returns:
            RemovalOutcome. NOT_INSTALLED only if the post-removal query
            confirms absence.

        Raises:
            ValueError: If name is empty.
        """
        if not name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

        logger.info("Removing %s for all users", name)

        reason = RemovalReason.NONE
        error: str | None = None
        try:
            self._run(_REMOVE_SCRIPT.format(name=ps_quote(name)), "Remove-AppxPackage")
        except CmdletError as e:
            reason = classify_hresult(e.hresult, str(e))
            error = str(e)
            logger.warning("Removal of %s failed (%s): %s", name, reason.value, error)
        except _RUN_ERRORS as e:
            reason = RemovalReason.OTHER
            error = str(e)
            logger.error("Removal of %s could not be started: %s", name, error)

        state = self._scanner.query(name)

        if state.is_fatal:
            return RemovalOutcome(
                result=RemovalResult.FAILED,
                reason=RemovalReason.OTHER,
                state=state,
                error=state.error,
            )

        if not state.is_present:
            logger.info("%s confirmed removed", name)
            return RemovalOutcome(
                result=RemovalResult.NOT_INSTALLED,
                reason=RemovalReason.NONE,
                state=state,
                error=error,
            )

        if reason == RemovalReason.NONE:
            reason = RemovalReason.OTHER
            error = f"{name} still present after removal ({state.result.value})"
            logger.warning(error)

        return RemovalOutcome(
            result=RemovalResult.FAILED,
            reason=reason,
            state=state,
            error=error,
        )

    def reregister(self, state: PackageState) -> RegistrationOutcome:
        """Re-register a package manifest and retry its removal.

        Only valid after remove() reported NEEDS_REREGISTRATION. Never raises:
        registration failures are returned with fatal=True.

        Args:
            state: Last known state of the package (provides install locations).

        Returns:
            RegistrationOutcome; success only if the retried removal confirmed
            absence.
        """
        if not state.install_locations:
            msg = f"No install location known for {state.name}"
            logger.error(msg)
            return RegistrationOutcome(success=False, error=msg, fatal=True)

        locations = ", ".join(ps_quote(loc) for loc in state.install_locations)
        logger.info("Re-registering %s from %s", state.name, ", ".join(state.install_locations))

        try:
            self._run(_REGISTER_SCRIPT.format(locations=locations), "Add-AppxPackage -Register")
        except (RuntimeError, *_RUN_ERRORS) as e:
            logger.error("Re-registration of %s failed: %s", state.name, e)
            return RegistrationOutcome(success=False, error=str(e), fatal=True)

        removal = self.remove(state.name)
        if removal.success:
            logger.info("%s removed after re-registration", state.name)
            return RegistrationOutcome(success=True, removal=removal)

        return RegistrationOutcome(
            success=False,
            removal=removal,
            error=removal.error or f"{state.name} still present after re-registration",
        )

    def remove_provisioned(self, package_identifier: str) -> ProvisionedRemovalOutcome:
        """Remove a machine-wide provisioning record.

        Args:
            package_identifier: Opaque PackageName from a provisioned query.

        Returns:
            ProvisionedRemovalOutcome. Never raises.
        """
        if not package_identifier:
            return ProvisionedRemovalOutcome(success=False, error="Empty package identifier")

        logger.info("Removing provisioned package %s", package_identifier)

        try:
            self._run(
                _REMOVE_PROVISIONED_SCRIPT.format(identifier=ps_quote(package_identifier)),
                "Remove-AppxProvisionedPackage",
            )
        except (RuntimeError, *_RUN_ERRORS) as e:
            logger.error("Removal of provisioned package %s failed: %s", package_identifier, e)
            return ProvisionedRemovalOutcome(success=False, error=str(e))

        return ProvisionedRemovalOutcome(success=True)

    def _run(self, script: str, cmdlet: str) -> CommandResult:
        """Run a deployment script and raise on failure.

        Args:
            script: PowerShell script using the shared error handler.
            cmdlet: Cmdlet name for error messages.

        Returns:
            CommandResult of the successful run.

        Raises:
            CmdletError: If the script reported a failure.
        """
        result = run_powershell(script, timeout=self._timeout)
        if result.success:
            return result

        hresult, message = _parse_error(result)
        raise CmdletError(f"{cmdlet} failed: {message}", hresult=hresult)


def _parse_error(result: CommandResult) -> tuple[int | None, str]:
    """Extract HRESULT and message from a failed deployment script.

    Args:
        result: CommandResult of the failed script.

    Returns:
        Tuple of (hresult or None, message).
    """
    fallback = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"

    try:
        rows = parse_json_records(result.stdout)
    except ValueError:
        return None, fallback

    if not rows:
        return None, fallback

    row = rows[0]
    raw = row.get("HResult")
    hresult = raw if isinstance(raw, int) else None
    message = str(row.get("Message") or fallback).strip()
    return hresult, message
