"""Unit tests for log file setup."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from appxctl.core.logs import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_VERBOSE,
    SEVERITY_WARNING,
    setup_logging,
    severity_for,
)


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Remove file handlers attached during a test."""
    yield
    logger = logging.getLogger("appxctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestSeverityFor:
    """Tests for severity mapping."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (logging.CRITICAL, SEVERITY_ERROR),
            (logging.ERROR, SEVERITY_ERROR),
            (logging.WARNING, SEVERITY_WARNING),
            (logging.INFO, SEVERITY_INFO),
            (logging.DEBUG, SEVERITY_VERBOSE),
        ],
    )
    def test_levels(self, level: int, expected: int) -> None:
        """Standard levels map to severities 1-4."""
        assert severity_for(level) == expected


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_default_path(self, isolated_home: Path) -> None:
        """Without a path the log goes to the state Logs folder."""
        path = setup_logging()

        assert path == isolated_home / "state" / "Logs" / "appxctl.log"
        assert path.parent.is_dir()

    def test_line_format(self, tmp_path: Path) -> None:
        """Each line carries timestamp, severity, component and message."""
        path = setup_logging(tmp_path / "run.log")

        logging.getLogger("appxctl.scanners.appx").warning("still staged")

        line = path.read_text(encoding="utf-8").strip()
        timestamp, severity, component, message = line.split(" | ")
        assert len(timestamp) == len("2026-10-18 09:15:02")
        assert severity == "2"
        assert component == "appxctl.scanners.appx"
        assert message == "still staged"

    def test_debug_only_when_verbose(self, tmp_path: Path) -> None:
        """Debug events are recorded only in verbose mode."""
        path = setup_logging(tmp_path / "quiet.log")
        logging.getLogger("appxctl.core").debug("hidden")
        assert "hidden" not in path.read_text(encoding="utf-8")

        verbose_path = setup_logging(tmp_path / "verbose.log", verbose=True)
        logging.getLogger("appxctl.core").debug("shown")
        assert "| 4 | appxctl.core | shown" in verbose_path.read_text(encoding="utf-8")

    def test_append_by_default(self, tmp_path: Path) -> None:
        """An existing log is appended to."""
        path = tmp_path / "run.log"
        path.write_text("previous run\n", encoding="utf-8")

        setup_logging(path)
        logging.getLogger("appxctl").info("next run")

        content = path.read_text(encoding="utf-8")
        assert content.startswith("previous run\n")
        assert "next run" in content

    def test_reset_truncates(self, tmp_path: Path) -> None:
        """reset=True truncates the log."""
        path = tmp_path / "run.log"
        path.write_text("previous run\n", encoding="utf-8")

        setup_logging(path, reset=True)
        logging.getLogger("appxctl").info("fresh")

        assert "previous run" not in path.read_text(encoding="utf-8")

    def test_replaces_previous_handler(self, tmp_path: Path) -> None:
        """Calling setup_logging again keeps a single file handler."""
        setup_logging(tmp_path / "a.log")
        setup_logging(tmp_path / "b.log")

        handlers = [h for h in logging.getLogger("appxctl").handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 1
        assert Path(handlers[0].baseFilename) == tmp_path / "b.log"
