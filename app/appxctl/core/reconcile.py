"""Reconciliation engine for AppX packages.

Drives a package through removal, provisioning cleanup and an optional
verified reinstall:

    START -> PACKAGE_REMOVED -> PROVISIONED_REMOVED -> MANAGER_PROBED
          -> INSTALLED -> VERIFIED -> (RETRY | DONE)

Every step returns a structured outcome. Failures are collected into the
ReconcileReport; nothing raises out of Reconciler.run().
"""

import logging
from dataclasses import dataclass, field

from appxctl.models.package import PackageState
from appxctl.models.report import (
    ErrorKind,
    ReconcileReport,
    ReconcileStage,
    RunError,
)
from appxctl.models.retry import RetryState
from appxctl.operators.appx import AppxOperator
from appxctl.operators.winget import InstallTarget, WinGetOperator, WinGetProbe
from appxctl.scanners.appx import AppxScanner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Run:
    """Accumulator for a single reconciliation run."""

    package: str
    stages: list[ReconcileStage] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)
    attempts: int = 0
    installer_invocations: int = 0
    converged: bool = False
    final_state: PackageState | None = None

    def enter(self, stage: ReconcileStage) -> None:
        self.stages.append(stage)
        logger.debug("%s: entering %s", self.package, stage.value)

    def fail(self, kind: ErrorKind, message: str) -> None:
        self.errors.append(RunError(kind=kind, message=message))
        logger.error("%s: %s", kind.value, message)

    def finish(self) -> ReconcileReport:
        self.enter(ReconcileStage.DONE)
        return ReconcileReport(
            package=self.package,
            stage=ReconcileStage.DONE,
            stages=tuple(self.stages),
            errors=tuple(self.errors),
            attempts=self.attempts,
            installer_invocations=self.installer_invocations,
            converged=self.converged,
            final_state=self.final_state,
        )


class Reconciler:
    """Reconcile one AppX package to a removed or freshly installed state.

    Example:
        >>> scanner = AppxScanner(settle_delay=30)
        >>> reconciler = Reconciler(
        ...     scanner=scanner,
        ...     operator=AppxOperator(scanner),
        ...     probe=WinGetProbe(),
        ...     installer=WinGetOperator(),
        ... )
        >>> report = reconciler.run("Microsoft.CompanyPortal", target=target)
        >>> report.exit_code
        0
    """

    def __init__(
        self,
        scanner: AppxScanner,
        operator: AppxOperator,
        probe: WinGetProbe,
        installer: WinGetOperator,
        max_attempts: int = 10,
    ) -> None:
        """Initialize the reconciler.

        Args:
            scanner: Package state scanner.
            operator: AppX removal/registration operator.
            probe: Package manager probe.
            installer: Package manager operator.
            max_attempts: Upper bound on install attempts.

        Raises:
            ValueError: If max_attempts is less than 1.
        """
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(msg)
        self._scanner = scanner
        self._operator = operator
        self._probe = probe
        self._installer = installer
        self._max_attempts = max_attempts

    def run(self, name: str, target: InstallTarget | None = None) -> ReconcileReport:
        """Run the reconciliation state machine once.

        Args:
            name: AppX package name.
            target: Application to reinstall. None removes without reinstalling.

        Returns:
            ReconcileReport; its stage is always DONE.
        """
        run = _Run(package=name)
        run.enter(ReconcileStage.START)
        if not name:
            run.fail(ErrorKind.FATAL, "Package name cannot be empty")
            return run.finish()
        logger.info("Reconciling %s (reinstall: %s)", name, target is not None)

        if not self._remove_package(run, name):
            return run.finish()
        run.enter(ReconcileStage.PACKAGE_REMOVED)

        self._remove_provisioned(run, name)
        run.enter(ReconcileStage.PROVISIONED_REMOVED)

        if target is None:
            return run.finish()

        probe = self._probe.probe()
        run.enter(ReconcileStage.MANAGER_PROBED)
        if not probe.passed:
            run.fail(
                ErrorKind.MANAGER_UNAVAILABLE,
                f"winget unavailable ({probe.failure.value}): {probe.error}",
            )
            return run.finish()

        self._install_until_converged(run, name, target, probe.binary_path)
        return run.finish()

    def _remove_package(self, run: _Run, name: str) -> bool:
        """Remove the package for all accounts.

        Returns:
            False if a fatal query error aborts the run, True otherwise.
        """
        state = self._scanner.query(name)
        run.final_state = state

        if state.is_fatal:
            run.fail(ErrorKind.FATAL, f"Could not query {name}: {state.error}")
            return False

        if not state.is_present:
            logger.info("%s is not installed for any user", name)
            return True

        removal = self._operator.remove(name)
        run.final_state = removal.state

        if removal.state.is_fatal:
            run.fail(ErrorKind.FATAL, f"Could not verify removal of {name}: {removal.state.error}")
            return False

        if removal.success:
            return True

        if not removal.needs_reregistration:
            run.fail(ErrorKind.REMOVAL, f"Removal of {name} failed ({removal.reason.value}): {removal.error}")
            return True

        # Registration works from the pre-removal install locations
        source_state = removal.state if removal.state.install_locations else state
        registration = self._operator.reregister(source_state)
        if registration.removal is not None:
            run.final_state = registration.removal.state
            if registration.removal.state.is_fatal:
                run.fail(
                    ErrorKind.FATAL,
                    f"Could not verify removal of {name}: {registration.removal.state.error}",
                )
                return False

        if registration.fatal:
            run.fail(ErrorKind.REGISTRATION, f"Re-registration of {name} failed: {registration.error}")
        elif not registration.success:
            run.fail(ErrorKind.REMOVAL, f"{name} still present after re-registration: {registration.error}")

        return True

    def _remove_provisioned(self, run: _Run, name: str) -> None:
        """Remove the machine-wide provisioning record, if any."""
        provisioned = self._scanner.query_provisioned(name)

        if provisioned.is_fatal:
            run.fail(ErrorKind.PROVISIONED, f"Could not query provisioned {name}: {provisioned.error}")
            return

        if not provisioned.is_provisioned:
            return

        outcome = self._operator.remove_provisioned(provisioned.package_identifier)
        if not outcome.success:
            run.fail(
                ErrorKind.PROVISIONED,
                f"Removal of provisioned {provisioned.package_identifier} failed: {outcome.error}",
            )

    def _install_until_converged(
        self,
        run: _Run,
        name: str,
        target: InstallTarget,
        binary_path: str,
    ) -> None:
        """Install and verify until converged or out of attempts."""
        retry = RetryState(
            max_attempts=self._max_attempts,
            settle_delay_seconds=self._scanner.settle_delay,
        )

        last_install_error: str | None = None

        while True:
            run.attempts = retry.attempt
            logger.info(
                "Install attempt %d of %d for %s", retry.attempt, retry.max_attempts, target.package_id
            )

            # The first attempt skips apps winget already lists; retries always reinstall
            if not retry.is_first or not self._installer.is_installed(binary_path, target):
                run.installer_invocations += 1
                outcome = self._installer.install(binary_path, target)
                last_install_error = None if outcome.success else outcome.error or "unknown error"
                if last_install_error is not None:
                    logger.warning("Install attempt %d failed: %s", retry.attempt, last_install_error)
            run.enter(ReconcileStage.INSTALLED)

            state = self._scanner.query(name)
            run.final_state = state
            if state.is_fatal:
                run.fail(ErrorKind.FATAL, f"Could not verify install of {name}: {state.error}")
                return

            listed = self._installer.is_installed(binary_path, target)
            run.enter(ReconcileStage.VERIFIED)

            if state.is_installed and listed:
                logger.info("%s converged after %d attempt(s)", name, retry.attempt)
                run.converged = True
                return

            logger.warning(
                "%s not converged (package: %s, winget listed: %s)",
                name,
                state.result.value,
                listed,
            )

            if retry.exhausted:
                if last_install_error is not None:
                    run.fail(
                        ErrorKind.INSTALL,
                        f"Last install of {target.package_id} failed: {last_install_error}",
                    )
                run.fail(
                    ErrorKind.CONVERGENCE,
                    f"{name} did not converge after {retry.max_attempts} attempt(s)",
                )
                return

            run.enter(ReconcileStage.RETRY)
            self._scanner.wait(retry.settle_delay_seconds)
            retry = retry.advance()
