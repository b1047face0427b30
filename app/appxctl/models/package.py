"""Package models for AppX state queries.

This module defines the data structures describing the installed,
staged and provisioned state of an AppX package across user accounts.
"""

from dataclasses import dataclass, field
from enum import Enum

# Well-known SID of the LocalSystem account
SYSTEM_SID = "S-1-5-18"
SYSTEM_USERNAME = "NT AUTHORITY\\SYSTEM"


class PackageResult(Enum):
    """Per-user installation status of an AppX package.

    Attributes:
        INSTALLED: At least one real user account holds a completed install.
        NOT_INSTALLED: No install record exists for any account.
        SYSTEM_STAGED: Only the machine account holds a record, which marks
            an incomplete or failed install. Never counts as installed.
        FATAL_ERROR: The package query itself failed.
    """

    INSTALLED = "installed"
    NOT_INSTALLED = "not_installed"
    SYSTEM_STAGED = "system_staged"
    FATAL_ERROR = "fatal_error"


class ProvisionedResult(Enum):
    """Status of a machine-wide provisioning record."""

    INSTALLED = "installed"
    NOT_INSTALLED = "not_installed"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True, slots=True)
class UserRecord:
    """One account's install record for a package.

    Attributes:
        sid: Security identifier of the account.
        username: Account name (may be empty for deleted accounts).
        install_state: Raw InstallState value reported by the OS.
        package_full_name: Full name of the package the record belongs to.
    """

    sid: str
    username: str
    install_state: str
    package_full_name: str = ""

    @property
    def is_system(self) -> bool:
        """Check if the record belongs to the LocalSystem account."""
        return self.sid == SYSTEM_SID or self.username.upper() == SYSTEM_USERNAME

    @property
    def is_installed(self) -> bool:
        """Check if the record describes a completed install."""
        return self.install_state.lower() == "installed"

    @property
    def account(self) -> str:
        """Return the display identifier of the account."""
        return self.username or self.sid


@dataclass(frozen=True, slots=True)
class PackageState:
    """Installed/staged status of one named package.

    Created fresh by every query and never cached.

    Attributes:
        name: Package name as passed to the query.
        result: Classified installation status.
        users: Ordered account identifiers holding an install record.
        records: Raw per-account records the classification was based on.
        install_locations: Distinct on-disk install locations of the package.
        error: Error message when result is FATAL_ERROR.
    """

    name: str
    result: PackageResult
    users: tuple[str, ...] = field(default=())
    records: tuple[UserRecord, ...] = field(default=())
    install_locations: tuple[str, ...] = field(default=())
    error: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate package state after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

    @property
    def is_installed(self) -> bool:
        """Check if a real user account holds a completed install."""
        return self.result == PackageResult.INSTALLED

    @property
    def is_present(self) -> bool:
        """Check if any install or staging record exists."""
        return self.result in (PackageResult.INSTALLED, PackageResult.SYSTEM_STAGED)

    @property
    def is_fatal(self) -> bool:
        """Check if the query failed."""
        return self.result == PackageResult.FATAL_ERROR


@dataclass(frozen=True, slots=True)
class ProvisionedPackageState:
    """Machine-wide provisioning record of a package.

    Independent of per-user state: removing the package for all users does
    not remove this record.

    Attributes:
        display_name: Display name of the provisioned package.
        result: Provisioning status.
        package_identifier: Opaque PackageName handle used for removal.
        error: Error message when result is FATAL_ERROR.
    """

    display_name: str
    result: ProvisionedResult
    package_identifier: str = ""
    error: str | None = None

    @property
    def is_provisioned(self) -> bool:
        """Check if a provisioning record exists."""
        return self.result == ProvisionedResult.INSTALLED

    @property
    def is_fatal(self) -> bool:
        """Check if the query failed."""
        return self.result == ProvisionedResult.FATAL_ERROR


def classify_records(records: list[UserRecord] | tuple[UserRecord, ...]) -> PackageResult:
    """Classify per-account records into a package result.

    A package with no records at all is not installed. A completed install
    held by any non-system account counts as installed. Everything else
    (records only for the machine account, or only incomplete records) is
    system-staged.

    Args:
        records: Per-account install records for the package.

    Returns:
        Classified PackageResult.
    """
    if not records:
        return PackageResult.NOT_INSTALLED

    if any(r.is_installed and not r.is_system for r in records):
        return PackageResult.INSTALLED

    return PackageResult.SYSTEM_STAGED
