"""
Logging for pyembed.

Every record comes from a runtime-call site and may carry these attributes
(passed through ``extra``):

    scope      component that logged (argv, status, runtime, config)
    func       runtime entry point that reported a failure
    err_msg    message carried by a failing PyStatus
    exitcode   exit code carried by a PyStatus
    layout     mirrored PyConfig layout in use (e.g. "PyConfig312")
    argc       number of arguments installed
    library    libpython the runtime was loaded from

Usage::

    from ._logging import scoped_logger

    log = scoped_logger("argv")
    log.debug("Installing argument vector", extra={"argc": 2})

Environment::

    PYEMBED_LOG_LEVEL=debug|info|warn|error|off (default: info)
    PYEMBED_LOG_FORMAT=json|human (default: human on a TTY, json otherwise)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

__all__ = ["logger", "setup_logging", "scoped_logger", "JsonFormatter", "HumanFormatter"]

# Attributes rendered by the formatters, in display order
RECORD_FIELDS = ("scope", "func", "err_msg", "exitcode", "layout", "argc", "library")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}

logger = logging.getLogger("pyembed")


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """The pyembed attributes set on ``record``, skipping unset ones."""
    fields = {}
    for name in RECORD_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per line: time, level, message and the call attributes."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        entry.update(record_fields(record))
        if record.levelno >= logging.ERROR:
            entry["location"] = f"{record.module}:{record.lineno}"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """``LEVEL [scope] message (func) key=value ...`` for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        scope = fields.pop("scope", record.name)
        func = fields.pop("func", None)

        line = f"{record.levelname:<7} [{scope}] {record.getMessage()}"
        if func:
            line += f" ({func})"
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def _resolve_format(format: str | None) -> str:
    fmt = format or os.environ.get("PYEMBED_LOG_FORMAT")
    if fmt:
        return fmt.lower()
    return "human" if sys.stderr.isatty() else "json"


def setup_logging(level: str | int = "info", format: str | None = None) -> None:
    """
    Replace the handlers of the ``pyembed`` logger with one stderr handler.

    Args:
        level: Level name (debug, info, warn, error, off) or a ``logging``
            constant. Unknown names mean info.
        format: "json" or "human". Defaults to ``PYEMBED_LOG_FORMAT``, then
            to human on a TTY and json otherwise.
    """
    if isinstance(level, str):
        level = _LEVELS.get(level.lower(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if _resolve_format(format) == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter())

    logger.handlers[:] = [handler]
    logger.setLevel(level)


class _ScopedLogger(logging.LoggerAdapter):
    """Adds ``scope`` to every record without discarding the caller's extra."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def scoped_logger(scope: str) -> logging.LoggerAdapter:
    """Logger for one pyembed component; records carry ``scope``."""
    return _ScopedLogger(logger, {"scope": scope})


# Leave an application's own configuration alone
if not logger.handlers:
    setup_logging(os.environ.get("PYEMBED_LOG_LEVEL", "info"))
