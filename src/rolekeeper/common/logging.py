"""Console logging for rolekeeper.

One handler on the root logger renders each record as a single line:
UTC timestamp, level, logger, the request correlation id and then every
``extra`` field as ``key=value``. Modules log dotted event names
(``roles.guard.reject``) and put the details in ``extra=log_context(...)``.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rolekeeper.settings import Settings

_CORRELATION_ID: ContextVar[str | None] = ContextVar("rolekeeper_correlation_id", default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "correlation_id", "taskName", "color_message"}

_INSTALLED_ATTR = "_rolekeeper_handler_installed"

_PROPAGATED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy")


class ConsoleLogFormatter(logging.Formatter):
    """Single-line formatter appending ``extra`` fields.

        2026-10-18T09:12:44.120Z WARNING rolekeeper.features.roles.provisioner [cid=-]
        failed to add 'editor' role, disk full short_name=editor
    """

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC).strftime(datefmt or self.datefmt)
        return f"{stamp}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or _CORRELATION_ID.get() or "-"
        )
        line = super().format(record)
        fields = [
            f"{key}={_render(value)}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        ]
        return " ".join([line, *fields]) if fields else line


def setup_logging(settings: Settings) -> None:
    """Install the console handler on the root logger.

    The handler is installed once per process; later calls only apply
    ``settings.logging_level`` (``ROLEKEEPER_LOGGING_LEVEL``).
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.logging_level.upper(), logging.INFO))
    if getattr(root, _INSTALLED_ATTR, False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleLogFormatter())
    root.handlers = [handler]

    for name in _PROPAGATED_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers.clear()
        library_logger.propagate = True

    setattr(root, _INSTALLED_ATTR, True)


def bind_request_context(correlation_id: str | None) -> None:
    """Attach ``correlation_id`` to every record logged by the current request."""
    _CORRELATION_ID.set(correlation_id)


def clear_request_context() -> None:
    _CORRELATION_ID.set(None)


def log_context(
    *,
    user_id: str | None = None,
    principal_id: str | None = None,
    role_id: str | None = None,
    short_name: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build an ``extra`` payload, dropping identifiers that are ``None``.

    Example:
        logger.error(
            "roles.guard.reject",
            extra=log_context(user_id=requester_id, reason="assign superuser"),
        )
    """

    identifiers = {
        "user_id": user_id,
        "principal_id": principal_id,
        "role_id": role_id,
        "short_name": short_name,
    }
    ctx = {key: value for key, value in identifiers.items() if value is not None}
    ctx.update(extra)
    return ctx


def _render(value: Any) -> str:
    return "null" if value is None else str(value)


__all__ = [
    "ConsoleLogFormatter",
    "bind_request_context",
    "clear_request_context",
    "log_context",
    "setup_logging",
]
