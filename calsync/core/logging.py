import contextlib
import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from calsync.core.config import settings

# Per-task log context (request id, user id, sync action, ...)
request_context = contextvars.ContextVar("request_context", default={})

TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s (%(filename)s:%(lineno)d) - %(message)s"

# Loggers that drown out ours at INFO
NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "googleapiclient.discovery_cache": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record, for log shippers in production.

    Keys passed through ``extra=`` and the current ``request_context`` are merged
    into the payload, so a sync failure logged inside ``log_context(user_id=...)``
    carries the user id without the caller repeating it.
    """

    STANDARD_ATTRS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.to_dict(record), default=str)

    def to_dict(self, record: logging.LogRecord) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.STANDARD_ATTRS
        }
        for key, value in {**request_context.get(), **extras}.items():
            payload.setdefault(key, value)
        return payload


class ContextFilter(logging.Filter):
    """Stamps the current log context onto each record it lets through."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in request_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _attach(
    root: logging.Logger,
    handler: logging.Handler,
    formatter: logging.Formatter,
    level: int,
) -> None:
    handler.setFormatter(formatter)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once for the process.

    Text output in development and tests, JSON in production, plus a file
    handler when LOG_FILE is set. ``level`` overrides LOG_LEVEL.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper())
    formatter = (
        JsonFormatter()
        if settings.ENVIRONMENT == "production"
        else logging.Formatter(TEXT_FORMAT)
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    _attach(root, logging.StreamHandler(sys.stdout), formatter, log_level)

    if settings.LOG_FILE:
        try:
            os.makedirs(Path(settings.LOG_FILE).parent, exist_ok=True)
            _attach(root, logging.FileHandler(settings.LOG_FILE), formatter, log_level)
        except OSError as e:
            root.warning(f"Could not set up file logging at {settings.LOG_FILE}: {e}")

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)

    return logging.getLogger("calsync")


@contextlib.contextmanager
def log_context(**fields):
    """
    Add ``fields`` to every record logged inside the block.

    Usage:
        with log_context(user_id=123, action="push_event"):
            logger.info("Pushing event")
    """
    token = request_context.set({**request_context.get(), **fields})
    try:
        yield
    finally:
        request_context.reset(token)
