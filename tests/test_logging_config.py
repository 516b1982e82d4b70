"""Tests for logging configuration."""

import logging

from ormimu_sync.utils.logging_config import (
    NOISY_LOGGERS,
    ColoredFormatter,
    configure_third_party_loggers,
    setup_logging,
)


def make_record(level=logging.WARNING):
    """Create a log record."""
    return logging.LogRecord(
        "ormimu_sync.test", level, "/src/executor.py", 42, "disk %s", ("full",), None
    )


class TestColoredFormatter:
    """Test ColoredFormatter."""

    def test_adds_location_and_color(self):
        """Test colored output with file:line location."""
        formatter = ColoredFormatter(fmt="%(location)s %(levelname)s %(message)s")
        output = formatter.format(make_record())
        assert output.startswith("executor.py:42 ")
        assert "\033[33m" in output
        assert output.endswith("disk full")

    def test_plain_output(self):
        """Test that colors can be turned off."""
        formatter = ColoredFormatter(fmt="%(levelname)s|%(message)s", use_color=False)
        assert formatter.format(make_record()) == "WARNING |disk full"

    def test_record_left_unchanged(self):
        """Test that other handlers still see the plain level name."""
        record = make_record()
        ColoredFormatter(fmt="%(levelname)s").format(record)
        assert record.levelname == "WARNING"


class TestSetupLogging:
    """Test setup_logging."""

    def test_console_and_file(self, restore_root_logger, tmp_path):
        """Test handler setup and file output."""
        log_file = tmp_path / "logs" / "sync.log"
        setup_logging(log_level="DEBUG", log_file=log_file)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 2
        logging.getLogger("ormimu_sync.test").info("hello from test")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "hello from test" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate(self, restore_root_logger):
        """Test that handlers are replaced, not added."""
        setup_logging(log_level="INFO")
        setup_logging(log_level="INFO")
        assert len(restore_root_logger.handlers) == 1

    def test_no_console(self, restore_root_logger):
        """Test that console output can be disabled."""
        setup_logging(log_level="INFO", console_output=False)
        assert restore_root_logger.handlers == []

    def test_third_party_loggers(self):
        """Test that noisy libraries are limited to warnings."""
        configure_third_party_loggers()
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
