"""
Structured JSON logging for the certificate kernel.

Each log line is one JSON object carrying the timestamp, level, logger
name and message, followed by the fields bound through ``LogContext``
and anything passed as ``extra=``.  Kernel exceptions logged with
``exc_info`` contribute their ``code`` and their structured attributes
as ``exc_*`` fields.

Context fields:
    correlation_id  caller-supplied id, or the batch id for bulk calls
    actor_id        the acting user
    record_id       the certificate being mutated
    batch_id        the bulk operation
"""

__all__ = [
    "CONTEXT_FIELDS",
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
from datetime import UTC, datetime
from typing import Any

from certificate_kernel.exceptions import CertificateKernelError
from certificate_kernel.utils.hashing import _json_serializer

CONTEXT_FIELDS: tuple[str, ...] = ("correlation_id", "actor_id", "record_id", "batch_id")

# Bound fields live in one immutable mapping; bind() swaps in a new one.
_bound: ContextVar[dict[str, str]] = ContextVar("certificate_log_context", default={})


class LogContext:
    """Request-scoped log fields, carried through contextvars."""

    @staticmethod
    def current() -> dict[str, str]:
        return dict(_bound.get())

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """
        Overlay context fields for the duration of a ``with`` block.

        None values leave the outer value in place.  Names outside
        ``CONTEXT_FIELDS`` are ignored.
        """
        merged = dict(_bound.get())
        merged.update(
            (name, value)
            for name, value in fields.items()
            if name in CONTEXT_FIELDS and value is not None
        )
        token = _bound.set(merged)
        try:
            yield
        finally:
            _bound.reset(token)


_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _encode(value: Any) -> Any:
    try:
        return _json_serializer(value)
    except TypeError:
        return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, CertificateKernelError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Renders a log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_bound.get(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_encode)


_ROOT = "certificate_kernel"


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``certificate_kernel`` namespace."""
    return logging.getLogger(f"{_ROOT}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``certificate_kernel`` logger once."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT)
    root.setLevel(level)
    root.propagate = False
    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Detach handlers so ``configure_logging`` can run again. Test use."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
