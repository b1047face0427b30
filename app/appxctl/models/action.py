"""Outcome models for package operations.

This module defines the structured results returned by the removal,
registration, provisioning, probe and install steps. Steps never raise
past their own boundary; callers inspect these results instead.
"""

from dataclasses import dataclass
from enum import Enum

from appxctl.models.package import PackageState


class RemovalResult(Enum):
    """Result of a removal attempt."""

    NOT_INSTALLED = "not_installed"
    FAILED = "failed"


class RemovalReason(Enum):
    """Classified reason of a failed removal.

    Attributes:
        NEEDS_REREGISTRATION: The package registration is stale and must be
            re-registered before removal can succeed.
        PATH_NOT_FOUND: Package files are missing or in use.
        OTHER: Any other failure.
        NONE: No failure.
    """

    NEEDS_REREGISTRATION = "needs_reregistration"
    PATH_NOT_FOUND = "path_not_found"
    OTHER = "other"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class RemovalOutcome:
    """Result of removing a package for all accounts.

    Attributes:
        result: NOT_INSTALLED only when a post-removal query confirmed absence.
        reason: Classified failure reason.
        state: Package state returned by the post-removal query.
        error: Error message reported by the removal call, if any.
    """

    result: RemovalResult
    reason: RemovalReason
    state: PackageState
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if the package is confirmed absent."""
        return self.result == RemovalResult.NOT_INSTALLED

    @property
    def needs_reregistration(self) -> bool:
        """Check if the registration recovery path applies."""
        return self.reason == RemovalReason.NEEDS_REREGISTRATION


@dataclass(frozen=True, slots=True)
class RegistrationOutcome:
    """Result of re-registering a package and retrying its removal.

    Attributes:
        success: True if the retried removal confirmed absence.
        removal: Outcome of the retried removal, if it ran.
        error: Error message on failure.
        fatal: True if registration itself raised.
    """

    success: bool
    removal: RemovalOutcome | None = None
    error: str | None = None
    fatal: bool = False


@dataclass(frozen=True, slots=True)
class ProvisionedRemovalOutcome:
    """Result of removing a machine-wide provisioning record."""

    success: bool
    error: str | None = None


class ProbeResult(Enum):
    """Result of validating the external package manager."""

    PASSED = "passed"
    FAILED = "failed"
    FATAL_ERROR = "fatal_error"


class ProbeFailure(Enum):
    """Why the package manager probe did not pass.

    NOT_INSTALLED and NOT_EXECUTABLE need different remediation: the first
    means installing the manager itself, the second means installing its
    runtime dependencies for the machine account.
    """

    NOT_INSTALLED = "not_installed"
    BINARY_MISSING = "binary_missing"
    NOT_EXECUTABLE = "not_executable"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class InstallerProbeResult:
    """Result of validating the external package manager.

    Attributes:
        result: Probe result; anything but PASSED forbids installs.
        binary_path: Resolved binary location, empty unless PASSED.
        version: Version string reported by the binary.
        failure: Classified failure when not PASSED.
        error: Error message when not PASSED.
    """

    result: ProbeResult
    binary_path: str = ""
    version: str | None = None
    failure: ProbeFailure = ProbeFailure.NONE
    error: str | None = None

    def __post_init__(self) -> None:
        """Validate probe data after initialization."""
        if self.result != ProbeResult.PASSED and self.binary_path:
            msg = "Only a passed probe may carry a binary path"
            raise ValueError(msg)
        if self.result == ProbeResult.PASSED and not self.binary_path:
            msg = "A passed probe requires a binary path"
            raise ValueError(msg)

    @property
    def passed(self) -> bool:
        """Check if installs may proceed."""
        return self.result == ProbeResult.PASSED


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """Result of invoking the package manager to install an application."""

    success: bool
    returncode: int | None = None
    error: str | None = None
