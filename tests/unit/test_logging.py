"""Unit tests for the structlog setup."""

from __future__ import annotations

import logging

import pytest

from blog_archiver.utils.logging import configure_logging, get_logger


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_noisy_library_loggers_are_quieted(restore_root_logger) -> None:
    configure_logging(log_level="DEBUG")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING
    assert logging.getLogger().level == logging.DEBUG


def test_get_logger_returns_usable_logger() -> None:
    logger = get_logger("blog_archiver.tests")
    logger.debug("logger_smoke_test", value=1)
