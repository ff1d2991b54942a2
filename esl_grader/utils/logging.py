"""Logging setup for the grader.

Thin layer over the standard library: module loggers accept an ``extra_data``
mapping that is rendered after the message (or merged into the JSON record when
JSON output is enabled), and every record carries the current request id.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

ROOT_LOGGER_NAME = "esl_grader"


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id to the current context and return it."""
    request_id = request_id or uuid.uuid4().hex[:12]
    _request_id.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    """Return the request id bound to the current context, if any."""
    return _request_id.get()


class _RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            fields = " ".join(f"{k}={v}" for k, v in extra_data.items())
            message = f"{message} [{fields}]"
        return message


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload.update(extra_data)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that accepts ``extra_data=...`` on every call."""

    def process(self, msg, kwargs):
        extra_data = kwargs.pop("extra_data", None)
        extra = kwargs.setdefault("extra", {})
        if extra_data:
            extra["extra_data"] = extra_data
        return msg, kwargs


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure the package root logger.

    Args:
        level: Log level name.
        json_format: Emit one JSON object per line instead of plain text.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(_RequestIdFilter())
    if json_format:
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(_TextFormatter(
            "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
        ))
    root.addHandler(handler)
    root.propagate = False


def get_logger(name: str) -> StructuredLogger:
    """Return a structured logger under the package root."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return StructuredLogger(logging.getLogger(name), {})


def log_llm_call(
    logger: StructuredLogger,
    provider: str,
    model: str,
    input_tokens: int,
    output_tokens: int,
    duration_ms: int,
    success: bool,
    error: Optional[str] = None
) -> None:
    """Log a single LLM call with its usage figures."""
    data = {
        "provider": provider,
        "model": model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "duration_ms": duration_ms,
        "success": success,
    }
    if error:
        data["error"] = error
        logger.error(f"LLM call to {provider} failed: {error}", extra_data=data)
    else:
        logger.info(f"LLM call to {provider} completed in {duration_ms}ms", extra_data=data)
