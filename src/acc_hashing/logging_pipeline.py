"""Logging setup for hashing diagnostics.

Hashing code only talks to module loggers; this module decides where those
records go. Structured output renders one JSON object per record and drains
through a bounded queue so a slow stream can never stall a hash call.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Callable, Iterable
from uuid import uuid4

from typing_extensions import override

from .settings import AccHashingSettings

LOGGER = logging.getLogger(__name__)

PACKAGE_LOGGER = "acc_hashing"

_RESERVED_KEYS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render log records as JSON with contextual metadata."""

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        trace_id = getattr(record, "trace_id", None) or self._default_trace_id
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_KEYS and key != "trace_id"
        }

        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": trace_id,
            "context": context,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records when the queue is full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        """Enqueue a record without blocking."""

        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        """Drop the record silently when the queue is full."""

        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    trace_id: str | None = None,
    level: int = logging.INFO,
    maxsize: int = 1024,
) -> logging.handlers.QueueListener:
    """Configure ``logger`` to emit JSON lines on stderr through a queue.

    Args:
        logger: Target logger to configure.
        trace_id: Static trace identifier; a random one is generated when
            omitted.
        level: Logging verbosity level.
        maxsize: Queue capacity; records beyond it are dropped.

    Returns:
        The started queue listener. Stop it with :func:`shutdown_listeners`.
    """

    logger.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=maxsize)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter(default_trace_id=trace_id or str(uuid4())))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def configure_logging(settings: AccHashingSettings) -> Callable[[], None]:
    """Apply ``settings`` to the package logger.

    With ``log_payloads`` enabled the level drops to DEBUG so the hashers'
    pre-hash diagnostics are emitted.

    Returns:
        A callable that removes the handlers added here and restores the
        previous level.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = logger.level
    previous_handlers = list(logger.handlers)
    level = logging.DEBUG if settings.log_payloads else settings.level

    listener: logging.handlers.QueueListener | None = None
    if settings.log_format == "json":
        listener = configure_structured_logging(
            logger, trace_id=settings.trace_id, level=level
        )
    else:
        logger.setLevel(level)
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)

    def teardown() -> None:
        if listener is not None:
            shutdown_listeners([listener])
        for added in [h for h in logger.handlers if h not in previous_handlers]:
            logger.removeHandler(added)
        logger.setLevel(previous_level)

    return teardown


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners while suppressing shutdown errors."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - logging cleanup
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
