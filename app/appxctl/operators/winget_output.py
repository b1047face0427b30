"""WinGet text output adapter.

winget has no machine-readable output mode for the commands used here, so
its console text is interpreted by substring matching. All knowledge of
that text format lives in this module.
"""

import re

NO_INSTALLED_MARKER = "No installed package found"

# Progress spinners and bars are written with carriage returns
_CONTROL_PATTERN = re.compile(r"[\r\b]")
_VERSION_PATTERN = re.compile(r"v?(\d+(?:\.\d+)+)")
_SEPARATOR_PATTERN = re.compile(r"^-{3,}$")
_TRUNCATION_MARKS = ("\u2026", "...")


def _lines(stdout: str) -> list[str]:
    """Split output into lines, keeping only the last segment of each
    carriage-return-overwritten line."""
    lines: list[str] = []
    for raw in stdout.splitlines():
        segment = _CONTROL_PATTERN.split(raw)[-1]
        if segment.strip():
            lines.append(segment)
    return lines


def _result_rows(stdout: str) -> list[str]:
    """Return the lines below the table header, or all lines if there is none."""
    lines = _lines(stdout)
    for index, line in enumerate(lines):
        if _SEPARATOR_PATTERN.match(line.strip()):
            return lines[index + 1 :]
    return lines


def _row_has_id(row: str, wanted: str) -> bool:
    """Check a casefolded row for the identifier, allowing a truncated column."""
    if wanted in row:
        return True
    # Narrow consoles cut long columns, e.g. 'Microsoft.VisualStudioC…'
    for token in row.split():
        for mark in _TRUNCATION_MARKS:
            stem = token.removesuffix(mark)
            if stem != token and stem and wanted.startswith(stem):
                return True
    return False


def is_listed(stdout: str, package_id: str) -> bool:
    """Check if `winget list --id` output reports the package as installed.

    Args:
        stdout: Output of `winget list --id <id> ...`.
        package_id: Package identifier that was listed.

    Returns:
        True if a result row contains the identifier, or a truncated
        prefix of it, False otherwise.
    """
    if not package_id or NO_INSTALLED_MARKER in stdout:
        return False

    wanted = package_id.casefold()
    return any(_row_has_id(row.casefold(), wanted) for row in _result_rows(stdout))


def parse_version(stdout: str) -> str | None:
    """Extract the version from `winget --version` output.

    Args:
        stdout: Output such as 'v1.7.10861'.

    Returns:
        Version without the leading 'v', or None if not found.
    """
    for line in _lines(stdout):
        match = _VERSION_PATTERN.search(line)
        if match:
            return match.group(1)
    return None


def version_key(text: str) -> tuple[int, ...]:
    """Build a sort key from the first dotted version in a string.

    Args:
        text: Text containing a version, e.g. a package folder name.

    Returns:
        Tuple of version components, empty if none found.
    """
    match = _VERSION_PATTERN.search(text)
    if not match:
        return ()
    return tuple(int(part) for part in match.group(1).split("."))
