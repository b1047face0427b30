"""Reconciliation configuration and settings.

This module provides the configuration model and I/O functions for a
package reconciliation run. Values stored in the TOML file act as
defaults that command-line options override.

Configuration is stored in <config dir>/appxctl.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from appxctl.core.paths import get_config_path
from appxctl.operators.winget import (
    DEFAULT_PACKAGE_PATTERN,
    DEFAULT_WINDOWS_APPS_ROOT,
    InstallBy,
    InstallTarget,
)

logger = logging.getLogger(__name__)


class ReconcileConfig(BaseModel):
    """Configuration for a reconciliation run.

    Attributes:
        package_name: AppX package name to reconcile.
        install: Reinstall the application after removal.
        winget_id: winget catalog identifier of the application.
        winget_name: winget catalog name of the application.
        winget_source: winget source to install from.
        install_by: Look the app up by name (default) or by id on install.
        binary_name: winget executable name.
        windows_apps_root: Folder holding packaged app installs.
        package_pattern: Glob matching App Installer package folders.
        max_attempts: Upper bound on install attempts.
        settle_delay_seconds: Wait before trusting a present package query.
        powershell_timeout_seconds: Timeout for each PowerShell call (0 = none).
        reset_log: Truncate the log file at startup.
    """

    model_config = ConfigDict(extra="forbid")

    package_name: Annotated[
        str | None,
        Field(description="AppX package name"),
    ] = None
    install: Annotated[
        bool,
        Field(description="Reinstall the application after removal"),
    ] = True
    winget_id: Annotated[
        str | None,
        Field(description="winget catalog identifier"),
    ] = None
    winget_name: Annotated[
        str | None,
        Field(description="winget catalog name"),
    ] = None
    winget_source: Annotated[
        str,
        Field(min_length=1, description="winget source"),
    ] = "msstore"
    # Name lookup is more reliable than id lookup for some msstore entries
    install_by: Annotated[
        InstallBy,
        Field(description="Install lookup key: name or id"),
    ] = "name"
    binary_name: Annotated[
        str,
        Field(min_length=1, description="winget executable name"),
    ] = "winget.exe"
    windows_apps_root: Annotated[
        Path,
        Field(description="Folder holding packaged app installs"),
    ] = DEFAULT_WINDOWS_APPS_ROOT
    package_pattern: Annotated[
        str,
        Field(min_length=1, description="Glob matching App Installer folders"),
    ] = DEFAULT_PACKAGE_PATTERN
    max_attempts: Annotated[
        int,
        Field(ge=1, le=100, description="Install attempts (1-100)"),
    ] = 10
    settle_delay_seconds: Annotated[
        float,
        Field(ge=0, le=600, description="Settle delay in seconds (0-600)"),
    ] = 30.0
    powershell_timeout_seconds: Annotated[
        float,
        Field(ge=0, le=3600, description="PowerShell timeout in seconds (0 = none)"),
    ] = 600.0
    reset_log: Annotated[
        bool,
        Field(description="Truncate the log file at startup"),
    ] = False

    @property
    def powershell_timeout(self) -> float | None:
        """Get the PowerShell timeout, None meaning no timeout."""
        return self.powershell_timeout_seconds or None

    def validate_for_install(self) -> None:
        """Check that an install target can be built.

        Raises:
            ConfigError: If the identifier required by install_by is missing.
        """
        if not self.winget_id:
            raise ConfigError("winget_id is required when install is enabled")
        if self.install_by == "name" and not self.winget_name:
            raise ConfigError("winget_name is required when install_by is 'name'")

    def install_target(self) -> InstallTarget | None:
        """Build the install target, or None if install is disabled.

        Raises:
            ConfigError: If install is enabled but the target is incomplete.
        """
        if not self.install:
            return None
        self.validate_for_install()
        return InstallTarget(
            package_id=self.winget_id or "",
            name=self.winget_name or "",
            source=self.winget_source,
            install_by=self.install_by,
        )


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> ReconcileConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated ReconcileConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ReconcileConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> ReconcileConfig:
    """Load configuration, falling back to defaults if no file exists.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Loaded or default ReconcileConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file at %s, using defaults", path or get_config_path())
        return ReconcileConfig()


def merge_overrides(config: ReconcileConfig, overrides: dict[str, Any]) -> ReconcileConfig:
    """Apply command-line overrides on top of a configuration.

    None values mean "not given" and are ignored.

    Args:
        config: Base configuration.
        overrides: Field values from the command line.

    Returns:
        New validated ReconcileConfig.

    Raises:
        ConfigError: If the merged values don't match the schema.
    """
    data = config.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ReconcileConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid option: {e}") from e


def save_config(config: ReconcileConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ReconcileConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: ReconcileConfig) -> dict[str, object]:
    """Convert ReconcileConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are omitted.

    Args:
        config: The ReconcileConfig to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    data = config.model_dump(mode="json")
    return {key: value for key, value in data.items() if value is not None}
