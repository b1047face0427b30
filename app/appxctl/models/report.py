"""Reconciliation report models.

The report replaces process-wide error flags: every step returns its
outcome and the reconciler collects failures here.
"""

from dataclasses import dataclass, field
from enum import Enum

from appxctl.models.package import PackageState


class ReconcileStage(Enum):
    """States of the reconciliation state machine."""

    START = "start"
    PACKAGE_REMOVED = "package_removed"
    PROVISIONED_REMOVED = "provisioned_removed"
    MANAGER_PROBED = "manager_probed"
    INSTALLED = "installed"
    VERIFIED = "verified"
    RETRY = "retry"
    DONE = "done"


class ErrorKind(Enum):
    """Category of a failure recorded during reconciliation."""

    FATAL = "fatal"
    REMOVAL = "removal"
    REGISTRATION = "registration"
    PROVISIONED = "provisioned"
    MANAGER_UNAVAILABLE = "manager_unavailable"
    INSTALL = "install"
    CONVERGENCE = "convergence"


@dataclass(frozen=True, slots=True)
class RunError:
    """A failure recorded during reconciliation."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """Final result of one reconciliation run.

    Attributes:
        package: Package name that was reconciled.
        stage: Terminal stage (always DONE for a finished run).
        stages: Stages visited, in order.
        errors: Failures recorded along the way.
        attempts: Install attempts started.
        installer_invocations: Times the package manager install ran.
        converged: True if package and manager both reported the app installed.
        final_state: Last package state observed.
    """

    package: str
    stage: ReconcileStage
    stages: tuple[ReconcileStage, ...] = field(default=())
    errors: tuple[RunError, ...] = field(default=())
    attempts: int = 0
    installer_invocations: int = 0
    converged: bool = False
    final_state: PackageState | None = None

    @property
    def failed(self) -> bool:
        """Check if any failure was recorded."""
        return bool(self.errors)

    @property
    def exit_code(self) -> int:
        """Return the process exit code for this run."""
        return 1 if self.errors else 0

    def has_error(self, kind: ErrorKind) -> bool:
        """Check if a failure of the given kind was recorded."""
        return any(e.kind == kind for e in self.errors)
