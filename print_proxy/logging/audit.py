"""Structured JSON audit log for the print proxy.

One JSON line per event on stdout, plus AUDIT_LOG_FILE when set. The
proxy records:

- startup, with one credential status record per environment
  (presence booleans and readiness only)
- login attempts and their outcome, with upstream status and latency
- registration forwards and upstream rejections
- login endpoint reachability checks
- WebSocket connects and disconnects, and failed broadcast deliveries

REST requests and WebSocket connections each get a short id that is
stamped on every record they produce. Credential values and session
tokens are masked by the formatter even if a caller passes them in.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from print_proxy.config.settings import get_settings

LOGGER_NAME = "print_proxy.audit"

REDACTED = "[REDACTED]"

# Compared lowercased. Presence booleans under these keys are kept.
SECRET_KEYS = frozenset({
    "apikey", "api_key", "agentkey", "agent_key",
    "token", "jwt", "authorization", "password",
})

# Id of the REST request or WebSocket connection being handled
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def redact(data: Any) -> Any:
    """Mask secret values in nested audit data."""
    if isinstance(data, dict):
        return {
            key: REDACTED
            if str(key).lower() in SECRET_KEYS and not isinstance(value, bool)
            else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


class JSONFormatter(logging.Formatter):
    """Formats audit records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(""),
        }
        if hasattr(record, "audit_data"):
            log_entry.update(redact(record.audit_data))
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """Attach JSON handlers to the audit logger."""
    settings = get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if settings.audit_log_file:
        file_handler = logging.FileHandler(settings.audit_log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # uvicorn configures the root logger; keep audit lines out of it
    logger.propagate = False


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


def begin_request() -> str:
    """Assign a fresh id to the current request or connection."""
    request_id = generate_request_id()
    request_id_var.set(request_id)
    return request_id


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp used in every outbound message."""
    return datetime.now(timezone.utc).isoformat()


class RequestTimer:
    """Measures upstream call latency in milliseconds."""

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
