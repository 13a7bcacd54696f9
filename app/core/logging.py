"""
app/core/logging.py

Purpose: Logging configuration

- JSON lines in production, coloured one-liners in development
- Per-event context (user_id, flow, step, ...) attached to every record
- Context lives in a ContextVar, so concurrent events never share it
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from app.core.config import settings


CONTEXT_FIELDS = ("user_id", "flow", "step", "event_type", "invoice_id", "request_id")

# Shown in the development one-liner, in this order
_SHORT_NAMES = {"user_id": "user", "flow": "flow", "step": "step", "invoice_id": "invoice", "request_id": "ticket"}

_log_context: ContextVar[Dict[str, Any]] = ContextVar("dormline_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Copy of the fields bound to the current task."""
    return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """
    Copies the current task's context fields onto each record.

    Fields passed explicitly through ``extra=`` are left as they are.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line for log shippers.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update({f: getattr(record, f) for f in CONTEXT_FIELDS if hasattr(record, f)})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class DevelopmentFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        tags = [f"{short}={getattr(record, f)}" for f, short in _SHORT_NAMES.items() if hasattr(record, f)]
        if tags:
            line += f" [{', '.join(tags)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging():
    """
    Installs a single stdout handler on the root logger.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "motor", "pymongo", "PIL", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger("dormline")
    logger.info(f"📝 Logging configured ({settings.ENVIRONMENT}, level={settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"dormline.{name}")


class LogContext:
    """
    Binds context fields for the current task until the block exits.

    Nested blocks merge their fields; leaving a block restores the outer
    fields. Each asyncio task keeps its own copy.

    Usage:
        with LogContext(user_id="U123", flow="PAYMENT"):
            logger.info("Processing slip")
    """

    def __init__(self, **fields):
        self.fields = fields
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
        self._token = None
