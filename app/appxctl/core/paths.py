"""Path management for appxctl.

On Windows all data lives under the machine-wide ProgramData folder, since
the tool normally runs as SYSTEM from a management agent. Elsewhere the
XDG Base Directory defaults are used.

Defaults:
- Windows: %ProgramData%\\appxctl\\ (config) and %ProgramData%\\appxctl\\Logs\\
- Other:   ~/.config/appxctl/ and ~/.local/state/appxctl/

APPXCTL_HOME overrides both roots.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "appxctl"


def _is_windows() -> bool:
    return os.name == "nt"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def _get_program_data_dir() -> Path:
    """Get the machine-wide application directory on Windows."""
    base = os.environ.get("ProgramData") or os.environ.get("PROGRAMDATA") or "C:\\ProgramData"
    return Path(base) / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to the configuration directory.
    """
    home = os.environ.get("APPXCTL_HOME")
    if home:
        return Path(home)
    if _is_windows():
        return _get_program_data_dir()
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes log files that should persist between runs.

    Returns:
        Path to the state directory.
    """
    home = os.environ.get("APPXCTL_HOME")
    if home:
        return Path(home) / "state"
    if _is_windows():
        return _get_program_data_dir()
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to <config dir>/appxctl.toml.
    """
    return get_config_dir() / "appxctl.toml"


def get_log_dir() -> Path:
    """Get the log directory path.

    Returns:
        Path to <state dir>/Logs.
    """
    return get_state_dir() / "Logs"


def get_log_path() -> Path:
    """Get the log file path.

    Returns:
        Path to <state dir>/Logs/appxctl.log.
    """
    return get_log_dir() / "appxctl.log"


def get_user_theme_path() -> Path:
    """Get the user theme configuration path.

    Returns:
        Path to <config dir>/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_log_dir() -> Path:
    """Create the log directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_log_dir(), "log")
