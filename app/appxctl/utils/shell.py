"""Shell execution utilities.

Provides subprocess execution for PowerShell scripts and external
binaries with proper error handling.
"""

import json
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any

# Windows PowerShell ships with every supported Windows release
POWERSHELL = "powershell.exe"

# Console output otherwise follows the OEM code page (cp437, cp850, ...)
UTF8_OUTPUT_PREAMBLE = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8\n"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    encoding: str = "utf-8",
) -> CommandResult:
    """Execute a command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command. None waits forever.
        cwd: Working directory for the command. If None, uses current directory.
        encoding: Output encoding. Undecodable bytes are replaced, never raised.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        encoding=encoding,
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def resolve_command(name: str) -> str | None:
    """Resolve a command name to its absolute path via PATH lookup.

    Args:
        name: Command name to resolve.

    Returns:
        Absolute path of the executable, or None if not found.
    """
    return shutil.which(name)


def ps_quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal.

    Args:
        value: Raw string value.

    Returns:
        Literal safe to interpolate into a PowerShell script.
    """
    return "'" + value.replace("'", "''") + "'"


def run_powershell(script: str, *, timeout: float | None = 300.0) -> CommandResult:
    """Execute a PowerShell script non-interactively with UTF-8 output.

    Args:
        script: PowerShell script text passed via -Command.
        timeout: Maximum time in seconds to wait. None waits forever.

    Returns:
        CommandResult from powershell.exe.

    Raises:
        subprocess.TimeoutExpired: If the script exceeds timeout.
        FileNotFoundError: If powershell.exe is not found.
    """
    return run_command(
        [
            POWERSHELL,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            UTF8_OUTPUT_PREAMBLE + script,
        ],
        timeout=timeout,
    )


def parse_json_records(stdout: str) -> list[dict[str, Any]]:
    """Parse ConvertTo-Json output into a list of records.

    ConvertTo-Json emits nothing for an empty pipeline, a bare object for a
    single item and an array otherwise.

    Args:
        stdout: Raw standard output of a PowerShell script.

    Returns:
        List of record dictionaries (possibly empty).

    Raises:
        ValueError: If the output is not a JSON object or array of objects.
    """
    text = stdout.strip()
    if not text:
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON from PowerShell: {e}"
        raise ValueError(msg) from e

    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return data

    msg = f"Unexpected JSON payload type: {type(data).__name__}"
    raise ValueError(msg)
