"""Tests for logging setup."""
import logging
from logging.handlers import TimedRotatingFileHandler
from unittest.mock import patch

import pytest

from mnemodrill.logging_config import setup_logging


@pytest.fixture
def root_logger():
    """Restore the root logger after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_console_logging(root_logger: logging.Logger) -> None:
    with patch("mnemodrill.logging_config.settings") as settings:
        settings.logging.dir = None
        settings.logging.format = "%(message)s"
        setup_logging("Starting", level="warning")

    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert logging.getLogger("google").level == logging.WARNING


def test_file_logging(root_logger: logging.Logger, tmp_path) -> None:
    with patch("mnemodrill.logging_config.settings") as settings:
        settings.logging.dir = str(tmp_path / "logs")
        settings.logging.format = "%(message)s"
        settings.logging.rotation = "midnight"
        settings.logging.interval = 1
        settings.logging.backup_count = 3
        setup_logging(level=logging.INFO)

    file_handlers = [h for h in root_logger.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(file_handlers) == 1
    assert (tmp_path / "logs" / "mnemodrill.log").exists()


if __name__ == "__main__":
    pytest.main([__file__])
