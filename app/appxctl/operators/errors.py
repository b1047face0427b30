"""Deployment error classification.

Maps HRESULT codes surfaced by the Appx deployment cmdlets to removal
failure reasons.
"""

import re
from enum import IntEnum

from appxctl.models.action import RemovalReason


class DeploymentError(IntEnum):
    """HRESULT codes with a known meaning for package removal."""

    # The package registration is missing; re-registering the manifest fixes it
    PACKAGE_NOT_FOUND = 0x80073CF1
    FILE_NOT_FOUND = 0x80070002
    PATH_NOT_FOUND = 0x80070003
    SHARING_VIOLATION = 0x80070020
    REMOVE_FAILED = 0x80073CFA


_REASONS: dict[int, RemovalReason] = {
    DeploymentError.PACKAGE_NOT_FOUND: RemovalReason.NEEDS_REREGISTRATION,
    DeploymentError.FILE_NOT_FOUND: RemovalReason.PATH_NOT_FOUND,
    DeploymentError.PATH_NOT_FOUND: RemovalReason.PATH_NOT_FOUND,
    DeploymentError.SHARING_VIOLATION: RemovalReason.PATH_NOT_FOUND,
}

_HEX_PATTERN = re.compile(r"0x[0-9a-f]{8}", re.IGNORECASE)


def normalize_hresult(value: int) -> int:
    """Convert a signed 32-bit HRESULT (as .NET reports it) to unsigned.

    Args:
        value: HRESULT as a signed or unsigned integer.

    Returns:
        Unsigned 32-bit HRESULT.
    """
    return value & 0xFFFFFFFF


def classify_hresult(hresult: int | None, message: str = "") -> RemovalReason:
    """Classify a removal failure.

    The structured HRESULT is authoritative. The error message is scanned for
    a hex code only when no HRESULT was reported.

    Args:
        hresult: HRESULT reported by the cmdlet, or None.
        message: Error message reported by the cmdlet.

    Returns:
        RemovalReason for the failure.
    """
    if hresult is not None:
        return _REASONS.get(normalize_hresult(hresult), RemovalReason.OTHER)

    for match in _HEX_PATTERN.findall(message):
        reason = _REASONS.get(int(match, 16))
        if reason is not None:
            return reason

    return RemovalReason.OTHER
