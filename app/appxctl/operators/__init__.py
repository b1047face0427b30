"""Package operators for removal, registration and installation.

This module provides the AppX operator and the winget probe/operator pair.
"""

from appxctl.operators.appx import AppxOperator, CmdletError
from appxctl.operators.winget import InstallTarget, WinGetOperator, WinGetProbe

__all__ = ["AppxOperator", "CmdletError", "InstallTarget", "WinGetOperator", "WinGetProbe"]
