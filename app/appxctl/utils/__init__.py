"""Utility modules for appxctl.

This module exports commonly used utility functions.
"""

from appxctl.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from appxctl.utils.shell import CommandResult, command_exists, run_command, run_powershell

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_powershell",
]
