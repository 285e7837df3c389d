import json
import logging

import pytest

from coinops.logging_config import JsonFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_json_formatter_emits_one_object_per_record() -> None:
    record = logging.LogRecord("coinops.cache", logging.WARNING, __file__, 1, "fallback %s", ("reference_table",), None)

    entry = json.loads(JsonFormatter().format(record))

    assert entry["level"] == "WARNING"
    assert entry["logger"] == "coinops.cache"
    assert entry["msg"] == "fallback reference_table"
    assert "time" in entry


def test_setup_logging_json(restore_root_logger) -> None:
    setup_logging("debug", "json")

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


def test_setup_logging_text_and_warn_alias(restore_root_logger) -> None:
    setup_logging("warn", "text")

    assert restore_root_logger.level == logging.WARNING
    assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


def test_setup_logging_unknown_level_defaults_to_info(restore_root_logger) -> None:
    setup_logging("verbose", "text")

    assert restore_root_logger.level == logging.INFO


def test_setup_logging_twice_keeps_one_handler(restore_root_logger) -> None:
    setup_logging("info", "json")
    setup_logging("debug", "text")

    assert len(restore_root_logger.handlers) == 1
    assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)
