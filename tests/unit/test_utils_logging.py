"""Tests for logging helpers and root logging setup."""

import io
import logging

import logging_config
from swap_risk.utils import get_logger


def test_get_logger_basic():
    """Test basic get_logger functionality."""
    logger = get_logger(__name__)
    assert isinstance(logger, logging.Logger)
    assert logger.name == __name__


def test_get_logger_with_level():
    """Test get_logger with custom level."""
    logger = get_logger(__name__ + ".level", level=logging.DEBUG)
    assert logger.level == logging.DEBUG


def test_get_logger_with_extra():
    """Extra context returns a LoggerAdapter carrying the fields."""
    logger = get_logger(__name__ + ".extra", extra={"direction": "0to1"})
    assert isinstance(logger, logging.LoggerAdapter)
    assert logger.extra == {"extra_direction": "0to1"}


def test_get_logger_structured_format():
    """Output has time | level | name:line | message."""
    logger_name = __name__ + ".format"
    logger = get_logger(logger_name, level=logging.INFO)

    captured = io.StringIO()
    handler = logger.handlers[0]
    original_stream = handler.stream
    handler.stream = captured
    try:
        logger.info("Quoted 100 -> 97")
    finally:
        handler.stream = original_stream

    output = captured.getvalue()
    assert "INFO" in output
    assert logger_name in output
    assert "Quoted 100 -> 97" in output
    assert "|" in output


def test_get_logger_minimal_format():
    logger = get_logger(__name__ + ".minimal", minimal=True)
    fmt = logger.handlers[0].formatter._fmt
    assert "%(levelname)" not in fmt
    assert "%(message)s" in fmt


def test_get_logger_no_duplicate_handlers():
    """Repeated calls reuse the logger without stacking handlers."""
    logger_name = __name__ + ".dupes"
    logger1 = get_logger(logger_name)
    handler_count = len(logger1.handlers)
    logger2 = get_logger(logger_name)

    assert logger1 is logger2
    assert len(logger2.handlers) == handler_count


def test_get_logger_existing_logger_with_handlers():
    """A logger that already has handlers is left alone."""
    logger_name = __name__ + ".existing"
    existing_logger = logging.getLogger(logger_name)
    existing_handler = logging.StreamHandler()
    existing_logger.addHandler(existing_handler)

    new_logger = get_logger(logger_name)
    assert len(new_logger.handlers) == 1
    assert new_logger.handlers[0] is existing_handler


class TestLoggingConfig:
    def teardown_method(self):
        logging.getLogger().handlers.clear()

    def test_setup_quiets_uvicorn_access(self):
        logging_config.setup()
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("web3").level == logging.WARNING

    def test_setup_sets_app_loggers(self):
        logging_config.setup(level=logging.WARNING)
        for name in ("dex", "swap_risk"):
            assert logging.getLogger(name).level == logging.WARNING

    def test_setup_debug_shows_http(self):
        logging_config.setup_debug()
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("uvicorn.access").level == logging.INFO
        assert logging.getLogger("web3").level == logging.WARNING

    def test_setup_minimal(self):
        logging_config.setup_minimal()
        assert logging.getLogger().level == logging.WARNING
