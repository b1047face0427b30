"""appxctl - AppX package reconciliation for managed Windows devices."""

__version__ = "0.1.0"
