"""Log file setup for appxctl.

Every run appends to a durable, line-oriented log next to the console
output. Each line carries a timestamp, a numeric severity and the
emitting component:

    2026-10-18 09:15:02 | 1 | appxctl.scanners.appx | Microsoft.X: installed

Severity levels: 1 info, 2 warning, 3 error, 4 verbose/debug.
"""

import logging
from pathlib import Path

from appxctl.core.paths import ensure_log_dir, get_log_path

LOG_FORMAT = "%(asctime)s | %(severity)d | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SEVERITY_INFO = 1
SEVERITY_WARNING = 2
SEVERITY_ERROR = 3
SEVERITY_VERBOSE = 4

_ROOT_LOGGER = "appxctl"


def severity_for(levelno: int) -> int:
    """Map a logging level number to a log file severity.

    Args:
        levelno: Standard logging level number.

    Returns:
        Severity between 1 and 4.
    """
    if levelno >= logging.ERROR:
        return SEVERITY_ERROR
    if levelno >= logging.WARNING:
        return SEVERITY_WARNING
    if levelno >= logging.INFO:
        return SEVERITY_INFO
    return SEVERITY_VERBOSE


class SeverityFormatter(logging.Formatter):
    """Formatter adding the numeric severity field to each record."""

    def format(self, record: logging.LogRecord) -> str:
        record.severity = severity_for(record.levelno)
        return super().format(record)


def setup_logging(
    path: Path | None = None,
    *,
    reset: bool = False,
    verbose: bool = False,
) -> Path:
    """Attach the log file handler to the application logger.

    Calling this again replaces the previously attached handler.

    Args:
        path: Log file path. If None, uses the default log path.
        reset: Truncate the log file instead of appending.
        verbose: Also record debug (severity 4) events.

    Returns:
        Path of the log file.

    Raises:
        RuntimeError: If the log directory cannot be created.
        OSError: If the log file cannot be opened.
    """
    if path is None:
        ensure_log_dir()
        log_path = get_log_path()
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        log_path = path

    handler = logging.FileHandler(log_path, mode="w" if reset else "a", encoding="utf-8")
    handler.setFormatter(SeverityFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger = logging.getLogger(_ROOT_LOGGER)
    for existing in list(logger.handlers):
        if isinstance(existing, logging.FileHandler):
            logger.removeHandler(existing)
            existing.close()

    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return log_path
