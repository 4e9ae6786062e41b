"""structlog on top of stdlib logging, emitted off the event loop.

Every record (ours, uvicorn's, httpx's) is rendered by one
``ProcessorFormatter``: a console renderer in dev/test, JSON in prod.
Records are handed to a ``QueueListener`` thread, so a slow stdout never
stalls request handling.
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from nyaarr.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)


BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(message)s",
            "use_colors": None,
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(client_addr)s - "%(request_line)s" %(status_code)s',
        },
    },
    "handlers": {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
        "access": {
            "formatter": "access",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"level": "INFO"},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        # One INFO line per Nyaa/Kitsu/RealDebrid call is noise.
        "httpx": {"level": "WARNING"},
    },
}

_listener: Optional[QueueListener] = None


def mask_secret(value: str | None, *, visible: int = 4) -> str:
    """Log-safe rendition of an account key: ``"abcd…"``."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}…"


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _drop_color_message(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # uvicorn duplicates the message with ANSI codes under this key
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_from_record(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Timestamp foreign records with their creation time, not render time."""
    record = event_dict.get("_record")
    if record is not None and "timestamp" not in event_dict:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _foreign_pre_chain() -> list[structlog.typing.Processor]:
    return [
        _drop_color_message,
        structlog.contextvars.merge_contextvars,
        _stamp_from_record,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def _formatter_kwargs(config: AppConfig) -> dict[str, Any]:
    return {
        "foreign_pre_chain": _foreign_pre_chain(),
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    }


# ---------------------------------------------------------------------------
# dictConfig (handed to uvicorn)
# ---------------------------------------------------------------------------


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """uvicorn-compatible dictConfig with structlog rendering.

    Loggers pinned above INFO in ``BASE_LOGGING_CONFIG`` keep their level;
    the rest follow ``config.log_level``.
    """
    cfg = copy.deepcopy(BASE_LOGGING_CONFIG)

    cfg["formatters"]["structlog"] = {
        "()": structlog.stdlib.ProcessorFormatter,
        **_formatter_kwargs(config),
    }
    for handler in cfg["handlers"].values():
        handler["formatter"] = "structlog"

    for logger_cfg in cfg["loggers"].values():
        if logging.getLevelName(logger_cfg.get("level", "INFO")) <= logging.INFO:
            logger_cfg["level"] = config.log_level

    cfg["root"] = {"handlers": ["default"], "level": config.log_level}
    return cfg


# ---------------------------------------------------------------------------
# Queue-based emission
# ---------------------------------------------------------------------------


class _LevelBand(logging.Filter):
    """Pass records with ``low <= levelno <= high``."""

    def __init__(self, low: int = logging.NOTSET, high: int = logging.CRITICAL) -> None:
        super().__init__()
        self._low = low
        self._high = high

    def filter(self, record: logging.LogRecord) -> bool:
        return self._low <= record.levelno <= self._high


class _EventDictQueueHandler(QueueHandler):
    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # The base class formats record.msg to a string; structlog needs the dict.
        return copy.copy(record)


def _stop_listener() -> None:
    global _listener
    if _listener is None:
        return
    try:
        _listener.stop()
    finally:
        _listener = None


def _stream_handler(stream: Any, formatter: logging.Formatter, band: _LevelBand) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setFormatter(formatter)
    handler.addFilter(band)
    return handler


def _start_listener(config: AppConfig) -> None:
    """Send every record through one queue; stdout below ERROR, stderr above."""
    global _listener
    _stop_listener()

    formatter = structlog.stdlib.ProcessorFormatter(**_formatter_kwargs(config))
    handlers = (
        _stream_handler(sys.stdout, formatter, _LevelBand(high=logging.WARNING)),
        _stream_handler(sys.stderr, formatter, _LevelBand(low=logging.ERROR)),
    )

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_EventDictQueueHandler(records))
    root.setLevel(config.log_level)

    # uvicorn's dictConfig attached handlers directly; funnel them via root.
    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True

    _listener = QueueListener(records, *handlers, respect_handler_level=True)
    _listener.start()
    atexit.register(_stop_listener)


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog and stdlib logging; return the uvicorn log_config."""
    structlog.configure(
        processors=[
            _drop_color_message,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    _start_listener(config)

    log.info("logging_configured", log_format=config.log_format, log_level=config.log_level)
    return cfg
