"""
Logging setup shared by every module.

Call ``init_logging()`` once when the app is built, then use
``get_logger("knowledgebase.<area>")``. Structured fields go in
``extra={...}``: the console shows them as ``key=value`` pairs and the
rotating file handler writes them as JSON. The middleware in ``main.py``
sets a per-request id that both handlers include.
"""
from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

_request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("kb_request_id", default=None)

# LogRecord attributes that are not "extra" fields
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "request_id", "request_id_part",
    "extras_part", "taskName", "asctime",
))


def set_request_id(rid: Optional[str]) -> None:
    _request_id_ctx.set(rid)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def clear_request_id() -> None:
    _request_id_ctx.set(None)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS and not k.startswith("_")}


class RequestIDFilter(logging.Filter):
    """Stamp the current request id (if any) on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class ConsoleFormatter(logging.Formatter):
    """Human readable line with extras appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        record.request_id_part = f" [req {rid}]" if rid else ""
        extras = _extra_fields(record)
        record.extras_part = "".join(f" {k}={v!r}" for k, v in extras.items()) if extras else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including any ``extra={...}`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def _default_log_dir() -> Path:
    return Path(os.getenv("LOG_DIR", Path.cwd() / "logs"))


def init_logging(
    *,
    level: Union[int, str, None] = None,
    log_dir: Union[str, Path, None] = None,
    filename: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    file_logging: bool = True,
) -> None:
    """
    Configure the root logger. Calling it again replaces the handlers.
    ``level`` falls back to $LOG_LEVEL, then INFO.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(level)

    request_filter = RequestIDFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(
        "%(asctime)s %(levelname)-7s %(name)s%(request_id_part)s: %(message)s%(extras_part)s",
        "%Y-%m-%d %H:%M:%S",
    ))
    console.addFilter(request_filter)
    root.addHandler(console)

    if not file_logging:
        return

    log_dir = Path(log_dir) if log_dir is not None else _default_log_dir()
    filename = filename or os.getenv("LOG_FILE", "knowledgebase.log")
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(log_dir / filename), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonFormatter())
        file_handler.addFilter(request_filter)
        root.addHandler(file_handler)
    except OSError:
        # e.g. read-only filesystem: keep console logging only
        root.warning("Failed to initialize file handler for logging; continuing with console only", exc_info=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
