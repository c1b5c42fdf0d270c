"""
Structured JSON logging for the UXOne workflow kernel.

Every record is rendered as one JSON object.  Request-scoped fields held in
``LogContext`` (correlation, actor, the workflow aggregate being changed and
the department acting on it) are merged into each record and take
precedence over ``extra`` keys of the same name.  Domain values such as
``Department``, ``DecisionStatus`` and UUIDs are written as their plain
values, both in the context and in ``extra`` payloads.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"uxone_log_{name}", default=None)
    for name in (
        "correlation_id",
        "request_id",
        "actor_id",
        "aggregate_id",
        "department",
    )
}


def _context_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class LogContext:
    """Context-local fields attached to every record (thread and task safe)."""

    FIELD_NAMES = tuple(_CONTEXT_FIELDS)

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set context fields.  ``None`` values leave a field unchanged."""
        unknown = set(fields) - _CONTEXT_FIELDS.keys()
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        for name, value in fields.items():
            if value is not None:
                _CONTEXT_FIELDS[name].set(_context_value(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: value
            for name, var in _CONTEXT_FIELDS.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_FIELDS.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Set fields for the duration of a block and restore them afterwards.

        Unknown names are ignored so callers can pass through loosely
        structured request metadata.
        """
        tokens = [
            (_CONTEXT_FIELDS[name], _CONTEXT_FIELDS[name].set(_context_value(value)))
            for name, value in fields.items()
            if value is not None and name in _CONTEXT_FIELDS
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)

    @classmethod
    def bind_workflow(
        cls,
        aggregate_id: UUID,
        actor_id: UUID | None = None,
        department: Enum | str | None = None,
    ):
        """Bind the fields identifying a change to one workflow aggregate."""
        return cls.bind(aggregate_id=aggregate_id, actor_id=actor_id, department=department)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Handle UUIDs, dates, enums and sets; anything else is rendered with str()."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Public attributes of UXOneError subclasses (department, version, ...)
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "uxone_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the uxone_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``uxone_kernel`` hierarchy.

    ``level`` may be a level name such as ``"DEBUG"``.  Only the first call
    has an effect until ``reset_logging``.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
