"""Logging setup for the API process.

Every record carries the request id of the request being served (taken from
``request_id_var``) and, when the caller passed them via ``extra=``, the
request fields listed in ``REQUEST_FIELDS``. Credentials are scrubbed from
messages before any handler formats them: bearer tokens, bare JWTs, bcrypt
hashes and ``password=...`` style pairs.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import settings


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes set through ``logger.x(..., extra={...})`` that end up in JSON logs
REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms", "user_id")

REDACTED = "[REDACTED]"

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine")


def _request_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in REQUEST_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        log_data.update(_request_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            log_data["location"] = f"{record.filename}:{record.lineno} in {record.funcName}"

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None) or request_id_var.get()
        rid = f"[{request_id[:8]}] " if request_id else ""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} {record.levelname:8} {rid}{record.name}: {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class SensitiveDataFilter(logging.Filter):
    """Scrub credentials from the rendered log message.

    The message is rendered once (``msg % args``), scrubbed, and stored back
    with ``args`` cleared, so values passed as format arguments are covered
    as well.
    """

    # Whole-value patterns: the match itself is the secret
    TOKEN_PATTERNS = (
        re.compile(r"(?i)(\bbearer\s+)[A-Za-z0-9\-_.~+/]+=*"),
        re.compile(r"\beyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*"),
        re.compile(r"\$2[aby]?\$\d{2}\$[./A-Za-z0-9]{53}"),
    )

    # key=value / key: value / "key": "value"
    SENSITIVE_KEYS = ("password_hash", "password", "auth_secret", "secret", "token")
    KEY_PATTERN = re.compile(
        r"""(?ix)
        (["']?(?:%s)["']?\s*[=:]\s*)   # key and separator
        (?!\[REDACTED\])               # already scrubbed
        ["']?[^\s,}\]"']+["']?         # value
        """
        % "|".join(SENSITIVE_KEYS)
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = self.scrub(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        return True

    @classmethod
    def scrub(cls, text: str) -> str:
        for pattern in cls.TOKEN_PATTERNS:
            text = pattern.sub(
                lambda m: (m.group(1) if m.lastindex else "") + REDACTED, text
            )
        return cls.KEY_PATTERN.sub(lambda m: m.group(1) + REDACTED, text)


def setup_logging() -> None:
    """Configure the root logger from ``settings.log_level`` / ``settings.log_format``."""
    level = getattr(logging, settings.log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if settings.log_format == "json" else TextFormatter()
    )
    handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``factorlens`` namespace."""
    return logging.getLogger(f"factorlens.{name}")
