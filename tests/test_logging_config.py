"""Tests for root logging setup."""

import json
import logging

import pytest

from sunrise.core import logging_config


@pytest.fixture
def fresh_root(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    monkeypatch.setattr(logging_config, "_CONFIGURED", False)
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_json_lines_carry_service(fresh_root, capsys):
    logging_config.setup_logging("sunrise-test", level="info", json_format=True)
    logging.getLogger("sunrise.test").info("Selected weather %s", "涼しい")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "Selected weather 涼しい"
    assert record["service"] == "sunrise-test"
    assert record["levelname"] == "INFO"


def test_text_format_and_idempotent(fresh_root, capsys):
    logging_config.setup_logging("sunrise-test", level="INFO", json_format=False)
    logging_config.setup_logging("other", level="DEBUG", json_format=True)
    assert len(fresh_root.handlers) == 1
    assert fresh_root.level == logging.INFO

    logging.getLogger("sunrise.test").warning("plain")
    assert "[sunrise-test] sunrise.test: plain" in capsys.readouterr().err


def test_noisy_loggers_are_quieted(fresh_root):
    logging_config.setup_logging(level="INFO", json_format=True)
    assert logging.getLogger("httpx").level == logging.WARNING
