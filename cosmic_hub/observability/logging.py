"""
Structured logging for the dashboard API and CLI.

JSON lines when stderr is not a terminal (containers, log shippers),
a compact human format otherwise. Every record carries the active
request ID when there is one.
"""

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .context import RequestContext, get_request_id

SERVICE_NAME = "cosmic-hub"

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record:

    {"timestamp": "2025-03-04T10:30:00.000Z", "level": "INFO",
     "logger": "cosmic_hub.dashboard.service", "service": "cosmic-hub",
     "message": "Computed 12 red flags", "request_id": "req-...", "scope": "pm"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).strftime(
                "%Y-%m-%dT%H:%M:%S.%f"
            )[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_obj["request_id"] = request_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


class HumanFormatter(logging.Formatter):
    """Readable single-line format for local development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        request_id = get_request_id()
        rid_str = f"[{request_id[:12]}] " if request_id else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {rid_str}{record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _want_json(json_format: bool | str | None) -> bool:
    if isinstance(json_format, str):
        return json_format.strip().lower() in ("1", "true", "yes", "json")
    if json_format is None:
        return not sys.stderr.isatty()
    return json_format


def configure_logging(
    level: str = "INFO",
    json_format: bool | str | None = None,
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: True/False, or the COSMIC_HUB_LOG_JSON string; None auto-detects
        log_file: Optional rotating JSON log file in addition to stderr
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if _want_json(json_format) else HumanFormatter())
    root_logger.addHandler(handler)

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class CorrelationIdMiddleware:
    """
    ASGI middleware binding a request ID for the duration of each HTTP request.

    Reuses a well-formed incoming X-Request-ID header (see
    normalize_request_id) and echoes the ID back on the response.
    """

    header_name = b"x-request-id"

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw = next(
            (value for key, value in scope.get("headers", []) if key.lower() == self.header_name),
            None,
        )
        ctx = RequestContext.from_header(raw)
        request_id = ctx.request_id

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((self.header_name, request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        with ctx:
            await self.app(scope, receive, send_with_request_id)
