"""Package scanners.

This module exports the scanner used to query AppX package state.
"""

from appxctl.scanners.appx import AppxScanner

__all__ = ["AppxScanner"]
