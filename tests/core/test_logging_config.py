from __future__ import annotations

import json
import logging

from punch_clock.core.logging_config import (
    RedactingFormatter,
    StructuredJsonFormatter,
    configure_logging,
    get_logger,
)


def _record(msg: str) -> logging.LogRecord:
    return logging.LogRecord("punch_clock.test", logging.INFO, __file__, 1, msg, None, None)


def test_bearer_tokens_and_passwords_are_redacted():
    out = RedactingFormatter("%(message)s").format(_record("Authorization: Bearer abcdefghijklmnop password=hunter22"))

    assert "abcdefghijklmnop" not in out
    assert "hunter22" not in out
    assert out.count("[REDACTED]") == 2


def test_json_formatter_emits_one_object():
    entry = json.loads(StructuredJsonFormatter().format(_record("hello")))
    assert entry["level"] == "info"
    assert entry["logger"] == "punch_clock.test"
    assert entry["message"] == "hello"


def test_loggers_live_under_package_root():
    assert get_logger("elsewhere").name == "punch_clock.elsewhere"
    assert get_logger("punch_clock.hours.engine").name == "punch_clock.hours.engine"


def test_configure_logging_replaces_handler():
    configure_logging("WARNING")
    logger = configure_logging("DEBUG", json_format=True)

    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, StructuredJsonFormatter)
    assert logger.level == logging.DEBUG
    configure_logging("INFO", json_format=False)
