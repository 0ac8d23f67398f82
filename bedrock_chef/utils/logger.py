"""Logging for Bedrock Chef.

One stdout handler on the "bedrock_chef" logger, formatted as JSON lines or
colored text. Environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Request correlation: handler() wraps each invocation in request_context(), and
RequestIdFilter stamps the current Lambda request id on every record emitted
inside it, including records from the signer, transport and invokers.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional


_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# level -> (ANSI color, icon)
LEVEL_STYLES = {
    "DEBUG": ("\033[36m", "🔍"),
    "INFO": ("\033[32m", "ℹ️"),
    "WARNING": ("\033[33m", "⚠️"),
    "ERROR": ("\033[31m", "❌"),
    "CRITICAL": ("\033[1;31m", "🔥"),
}
RESET = "\033[0m"


@contextmanager
def request_context(request_id: Optional[str]) -> Iterator[None]:
    """Attach request_id to every bedrock_chef record logged inside the block.

    asyncio.run() copies the current context into its task, so coroutines started
    inside the block see the same id.
    """
    token = _request_id.set(request_id)
    try:
        yield
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Copy the active request id onto the record. An explicit extra= wins."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = _request_id.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for CloudWatch Logs Insights."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class RichTextFormatter(logging.Formatter):
    """Colored single-line text for terminals, with the request id in brackets."""

    def format(self, record: logging.LogRecord) -> str:
        color, icon = LEVEL_STYLES.get(record.levelname, ("", ""))
        request_id = getattr(record, "request_id", None)

        parts = [
            icon,
            self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            f"{record.levelname:<8}",
            f"{record.name:<20}",
        ]
        if request_id:
            parts.append(f"[{request_id}]")
        parts.append(record.getMessage())

        text = f"{color}{' '.join(parts)}{RESET}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching the stdout handler on first use.

    Args:
        name: Logger name.

    Returns:
        Configured logger. Repeated calls do not add handlers.
    """
    instance = logging.getLogger(name)
    if instance.handlers:
        return instance

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    formatter = JSONFormatter() if os.getenv("LOG_TYPE", "text").lower() == "json" else RichTextFormatter()

    # Lambda captures stdout into CloudWatch
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    instance.setLevel(level)
    instance.addFilter(RequestIdFilter())
    instance.addHandler(stream_handler)
    return instance


logger = get_logger("bedrock_chef")

# aiohttp logs every connection at DEBUG/INFO
logging.getLogger("aiohttp").setLevel(logging.WARNING)
