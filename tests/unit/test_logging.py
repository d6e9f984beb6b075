"""Unit tests for the logging module."""

import io
import logging

import pytest

from layerscan.utils.config import LoggingConfig
from layerscan.utils.logging import (
    ContextFormatter,
    configure_logging,
    get_logger,
    get_logger_with_context,
    select_level,
)


def make_record(message: str, **context) -> logging.LogRecord:
    record = logging.LogRecord("layerscan.core", logging.INFO, __file__, 1, message, None, None)
    if context:
        record.context = context
    return record


class TestContextFormatter:
    """Tests for ContextFormatter."""

    def test_plain_without_context(self):
        assert ContextFormatter().format(make_record("hello")) == "INFO: hello"

    def test_plain_prefixes_image(self):
        record = make_record("Extracting layers", image="debian:latest")
        assert ContextFormatter().format(record) == "INFO: [debian:latest] Extracting layers"

    def test_structured_pairs(self):
        formatter = ContextFormatter("%(message)s", structured=True)
        record = make_record("done", image="debian:latest", path="/tmp/my dir")
        assert formatter.format(record) == 'done image=debian:latest path="/tmp/my dir"'


class TestSelectLevel:
    """Tests for select_level."""

    def test_config_level(self):
        assert select_level(LoggingConfig(level="error")) == "ERROR"

    def test_debug_mode(self):
        assert select_level(LoggingConfig(debug=True)) == "DEBUG"

    def test_flags_win(self):
        assert select_level(LoggingConfig(level="error"), verbose=True) == "DEBUG"
        assert select_level(LoggingConfig(debug=True), quiet=True) == "WARNING"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_single_handler(self):
        stream = io.StringIO()
        configure_logging("debug", stream=stream)
        configure_logging("debug", stream=stream)

        logger = logging.getLogger("layerscan")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG

        get_logger_with_context("core.exporter", image="demo:latest").debug("About to export")
        assert stream.getvalue() == "DEBUG: [demo:latest] About to export\n"

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("loud")


class TestGetLogger:
    """Tests for get_logger."""

    def test_prefixes_name(self):
        assert get_logger("engine").name == "layerscan.engine"

    def test_keeps_package_names(self):
        assert get_logger("layerscan.core.resolver").name == "layerscan.core.resolver"
        assert get_logger("layerscan").name == "layerscan"
