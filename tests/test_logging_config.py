"""Tests for logging_config module."""
import logging
import sys

import pytest
from loguru import logger

from tts_orchestrator.logging_config import configure_logging, detect_debug_mode


@pytest.fixture
def restore_root_logging():
    handlers = list(logging.root.handlers)
    level = logging.root.level
    yield
    logging.root.handlers = handlers
    logging.root.setLevel(level)
    logger.remove()
    logger.add(sys.stderr)


def test_standard_logging_is_routed_to_loguru(restore_root_logging):
    configure_logging("DEBUG")
    messages = []
    logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")

    logging.getLogger("some.library").warning("disk almost full")

    assert "disk almost full" in messages


def test_httpx_request_logging_is_quietened(restore_root_logging):
    configure_logging()
    assert logging.getLogger("httpx").level == logging.WARNING


def test_detect_debug_mode(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "info")
    monkeypatch.setattr("sys.argv", ["host"])
    assert detect_debug_mode() is False

    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert detect_debug_mode() is True
