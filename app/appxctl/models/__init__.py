"""Data models for appxctl.

This module exports the core data structures used throughout the application.
"""

from appxctl.models.action import (
    InstallerProbeResult,
    InstallOutcome,
    ProbeFailure,
    ProbeResult,
    ProvisionedRemovalOutcome,
    RegistrationOutcome,
    RemovalOutcome,
    RemovalReason,
    RemovalResult,
)
from appxctl.models.package import (
    PackageResult,
    PackageState,
    ProvisionedPackageState,
    ProvisionedResult,
    UserRecord,
    classify_records,
)
from appxctl.models.report import ErrorKind, ReconcileReport, ReconcileStage, RunError
from appxctl.models.retry import RetryState

__all__ = [
    "ErrorKind",
    "InstallOutcome",
    "InstallerProbeResult",
    "PackageResult",
    "PackageState",
    "ProbeFailure",
    "ProbeResult",
    "ProvisionedPackageState",
    "ProvisionedRemovalOutcome",
    "ProvisionedResult",
    "ReconcileReport",
    "ReconcileStage",
    "RegistrationOutcome",
    "RemovalOutcome",
    "RemovalReason",
    "RemovalResult",
    "RetryState",
    "RunError",
    "UserRecord",
    "classify_records",
]
