"""Logging for the query builder and its shell.

Records logged on behalf of a builder session carry the session id and, for
store activity, the store ``version`` and the ``operation`` that produced
them. Both formatters render these fields: the JSON formatter as top-level
keys, the text formatter as a ``[key=value ...]`` suffix.
"""

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, MutableMapping, Optional, Tuple

from ..config import LoggingConfig

CONTEXT_FIELDS = ("session", "version", "operation")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Builder context fields present on ``record``, in display order."""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, builder context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class StandardFormatter(logging.Formatter):
    """Human-readable lines; builder context goes after the message."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def _build_handlers(config: LoggingConfig, stream) -> List[logging.Handler]:
    # stdout belongs to the shell
    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    return handlers


def setup_logging(config: Optional[LoggingConfig] = None, stream=None) -> None:
    """Install root handlers according to the ``logging`` config section.

    Args:
        config: Logging section; defaults apply when omitted
        stream: Console stream, stderr by default
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = StructuredFormatter() if config.structured else StandardFormatter()

    handlers = _build_handlers(config, stream)
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)

    # sqlglot warns on every unsupported construct it meets while transpiling
    logging.getLogger("sqlglot").setLevel(logging.ERROR)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Stamps every record with the session id.

    Per-call ``extra`` values (``version``, ``operation``) are merged in and
    take precedence over the adapter's own context.
    """

    @property
    def session(self) -> str:
        return self.extra["session"]

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> Tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def new_session_id() -> str:
    return uuid.uuid4().hex[:8]


def get_session_logger(name: str, session: Optional[str] = None) -> SessionLoggerAdapter:
    """Logger for ``name`` bound to a builder session.

    A fresh session id is generated when none is given.

    Example:
        >>> log = get_session_logger(__name__, "a1b2c3d4")
        >>> log.debug("add_table: no change", extra={"version": 3, "operation": "add_table"})
    """
    return SessionLoggerAdapter(
        logging.getLogger(name), {"session": session or new_session_id()}
    )
