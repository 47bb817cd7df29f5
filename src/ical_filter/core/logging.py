"""Structured logging for the ical-filter daemon.

Every module logs through ``logging.getLogger(__name__)``; structlog's
ProcessorFormatter renders those stdlib records, so no call site imports
structlog.

Console output is either ``text`` (colored, for a terminal) or ``json``
(one object per line). When ``log_root`` is set, the same records are also
appended as JSON lines to ``{log_root}/{service_name}.log``.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import WatchedFileHandler
from pathlib import Path

import structlog
from opentelemetry import trace

DEFAULT_LOG_NAME = "ical-filter"

# Loggers that are chatty at INFO: one line per request or connection.
_NOISE_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


class ServiceNameAdder:
    """Processor that stamps every record with a fixed ``service`` key."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def __call__(
        self,
        logger: logging.Logger,  # noqa: ARG002
        method_name: str,  # noqa: ARG002
        event_dict: dict,
    ) -> dict:
        event_dict.setdefault("service", self.service_name)
        return event_dict


def add_trace_ids(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Add ``trace_id`` and ``span_id`` while a recording span is current."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _pre_chain(time_fmt: str, service_name: str) -> list[structlog.types.Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt, utc=True),
        ServiceNameAdder(service_name),
        add_trace_ids,
        structlog.stdlib.ExtraAdder(),
    ]


def _formatter(
    renderer: structlog.types.Processor, pre_chain: list[structlog.types.Processor]
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_root: Path | str | None = None,
    service_name: str | None = None,
) -> None:
    """Install the console handler (and optional file handler) on the root logger.

    Calling it again replaces the previous handlers.

    Parameters
    ----------
    level:
        Root log level name, e.g. ``"DEBUG"``.
    fmt:
        ``"text"`` for colored console output, ``"json"`` for JSON lines.
    log_root:
        Directory for the JSON log file ``{service_name}.log``. Created if missing.
    service_name:
        Value of the ``service`` key on every record, and the log file stem.
    """
    name = service_name or DEFAULT_LOG_NAME

    if fmt == "json":
        console = _formatter(structlog.processors.JSONRenderer(), _pre_chain("iso", name))
    else:
        console = _formatter(structlog.dev.ConsoleRenderer(), _pre_chain("%H:%M:%S", name))

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console)
    root.addHandler(console_handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if log_root is not None:
        log_dir = Path(log_root)
        log_dir.mkdir(parents=True, exist_ok=True)
        # Reopens the file after logrotate moves it.
        file_handler = WatchedFileHandler(log_dir / f"{name}.log")
        file_handler.setFormatter(
            _formatter(structlog.processors.JSONRenderer(), _pre_chain("iso", name))
        )
        root.addHandler(file_handler)

    for noisy in _NOISE_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
