"""Request-aware logging for the API server.

``setup_logging("Server")`` runs once in the app lifespan. After that every
``logging.getLogger(__name__)`` call is tagged with the request id (set by the
request middleware) and the authenticated user id (set by the auth gate)::

    2026-10-19 14:30:01 [Server][Req 1a2b3c4d][User 7][INFO] services.voice:88 - Transcribed 1843 bytes
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path

request_id_var: ContextVar[str] = ContextVar("request_id_var", default="")
user_id_var: ContextVar[str] = ContextVar("user_id_var", default="")

STREAM_HANDLER_NAME = "_companion_stream"
FILE_HANDLER_NAME = "_companion_file"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "multipart")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class ContextFilter(logging.Filter):
    """Copies the process role and the current request/user ids onto records."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        record.user_id = user_id_var.get("")  # type: ignore[attr-defined]
        return True


class ContextFormatter(logging.Formatter):
    @staticmethod
    def context_prefix(record: logging.LogRecord) -> str:
        tags = []
        role = getattr(record, "role", "")
        if role:
            tags.append(role)
        request_id = getattr(record, "request_id", "")
        if request_id:
            tags.append(f"Req {request_id[:8]}")
        user_id = getattr(record, "user_id", "")
        if user_id:
            tags.append(f"User {user_id}")
        tags.append(record.levelname)
        return "".join(f"[{tag}]" for tag in tags)

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        line = "{time} {prefix} {name}:{lineno} - {message}".format(
            time=self.formatTime(record, self.datefmt),
            prefix=self.context_prefix(record),
            name=record.name,
            lineno=record.lineno,
            message=record.message,
        )

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        extras = [text for text in (record.exc_text, record.stack_info) if text]
        return "\n".join([line, *extras])


def _attach(root: logging.Logger, handler: logging.Handler, name: str, role: str) -> None:
    handler.name = name
    handler.addFilter(ContextFilter(role))
    handler.setFormatter(ContextFormatter(datefmt=DATE_FORMAT))
    root.addHandler(handler)


def setup_logging(role: str) -> None:
    """Configure the root logger for *role*; a second call is a no-op.

    Logs go to stderr, and also to a size-rotated file when ``LOG_FILE`` is
    set. Chatty HTTP client loggers are capped at WARNING, and uvicorn's own
    handlers are dropped so its records flow through the root handlers.
    """
    from config import settings

    root = logging.getLogger()
    if any(getattr(h, "name", None) == STREAM_HANDLER_NAME for h in root.handlers):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    _attach(root, logging.StreamHandler(sys.stderr), STREAM_HANDLER_NAME, role)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _attach(root, file_handler, FILE_HANDLER_NAME, role)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if "server" in role.lower():
        for name in _UVICORN_LOGGERS:
            uv_logger = logging.getLogger(name)
            uv_logger.handlers.clear()
            uv_logger.propagate = True
