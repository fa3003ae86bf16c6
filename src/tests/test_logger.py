import logging

import pytest

from clipsense.utils.logger import LOGGING_FORMAT, setup_logger


@pytest.fixture
def package_logger():
    logger = logging.getLogger("clipsense")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


def test_setup_logger_uses_requested_level(package_logger):
    logger = setup_logger("debug")

    assert logger is package_logger
    assert logger.level == logging.DEBUG


def test_setup_logger_falls_back_to_info(package_logger):
    assert setup_logger("chatty").level == logging.INFO


def test_setup_logger_is_idempotent(package_logger):
    setup_logger("info")
    handler_count = len(package_logger.handlers)

    setup_logger("warning")

    assert len(package_logger.handlers) == handler_count
    assert package_logger.level == logging.WARNING
    assert package_logger.handlers[-1].formatter._fmt == LOGGING_FORMAT
