"""Console styles for appxctl.

Every style name referenced by console markup or table settings is a field
of ConsoleStyles. A [styles] table in <config dir>/theme.toml overrides any
of them with a Rich style definition, e.g.:

    [styles]
    staged = "bold yellow"
    border = "#29526d"
"""

import logging
import tomllib
from functools import cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.errors import StyleSyntaxError
from rich.style import Style
from rich.theme import Theme

from appxctl.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)


class ConsoleStyles(BaseModel):
    """Rich style definitions keyed by the names used in console output."""

    model_config = ConfigDict(extra="forbid")

    # Package and run states
    installed: str = "bold #03b971"
    not_installed: str = "#b2bec3"
    staged: str = "bold #f5b332"
    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "bold #f53263"
    info: str = "#0ec1c8"

    # Tables
    muted: str = "#b2bec3"
    bold_header: str = "bold #69B9A1"
    border: str = "#29526d"

    @field_validator("*")
    @classmethod
    def check_style(cls, value: str) -> str:
        try:
            Style.parse(value)
        except StyleSyntaxError as e:
            msg = f"invalid style {value!r}: {e}"
            raise ValueError(msg) from e
        return value


def load_styles(path: Path | None = None) -> ConsoleStyles:
    """Load console styles, applying user overrides when present.

    A missing file gives the defaults. An unreadable or invalid file is
    logged and also gives the defaults.

    Args:
        path: Theme file. If None, uses the default theme path.

    Returns:
        ConsoleStyles instance.
    """
    theme_path = path or get_user_theme_path()

    try:
        with open(theme_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return ConsoleStyles()
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", theme_path, e)
        return ConsoleStyles()

    overrides = data.get("styles", {})
    if not isinstance(overrides, dict):
        logger.warning("Ignoring theme file %s: [styles] must be a table", theme_path)
        return ConsoleStyles()

    try:
        return ConsoleStyles.model_validate(overrides)
    except ValidationError as e:
        logger.warning("Ignoring theme file %s: %s", theme_path, e)
        return ConsoleStyles()


def build_theme(styles: ConsoleStyles | None = None) -> Theme:
    """Build a Rich theme from console styles."""
    return Theme((styles or load_styles()).model_dump())


@cache
def get_theme() -> Theme:
    """Return the console theme, loaded once per process."""
    return build_theme()
