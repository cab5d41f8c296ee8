"""Centralized logging configuration.

All modules should use:
    from ..core.logging_config import get_logger
    logger = get_logger(__name__)

Loggers are children of the ``punch_clock`` logger so they share its handler.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = "punch_clock"

_configured = False

_SECRET_PATTERNS = [
    re.compile(r"(Bearer\s+)[\w\-\.]{10,}", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)['\"]?[\w\-\.]{10,}['\"]?", re.IGNORECASE),
    re.compile(r"(password\s*[:=]\s*)['\"]?[^\s'\"]{4,}['\"]?", re.IGNORECASE),
]


def _redact_secrets(message: str) -> str:
    result = message
    for pattern in _SECRET_PATTERNS:
        result = pattern.sub(r"\1[REDACTED]", result)
    return result


class RedactingFormatter(logging.Formatter):
    """Plain text formatter that strips bearer tokens and passwords."""

    def format(self, record: logging.LogRecord) -> str:
        return _redact_secrets(super().format(record))


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": _redact_secrets(record.getMessage()),
        }
        if record.exc_info:
            entry["stackTrace"] = _redact_secrets(self.formatException(record.exc_info))
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: Optional[str] = None, *, json_format: Optional[bool] = None) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Safe to call more than once; later calls replace the handler.
    """

    global _configured

    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = os.environ.get("LOG_JSON", "0") == "1"

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(StructuredJsonFormatter())
    else:
        handler.setFormatter(RedactingFormatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    logger.addHandler(handler)

    _configured = True
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger under the ``punch_clock`` hierarchy."""

    if not _configured:
        configure_logging()

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
