"""Service configuration loading and validation.

Reads ``ICAL_FILTER_*`` environment variables and returns a validated
``ServiceConfig`` dataclass. Unset variables fall back to their defaults; a
set but unparseable variable raises ``ConfigError``.

Variables:

- ``ICAL_FILTER_SOCKETADDR``: ``host:port`` (or ``[v6-host]:port``) to bind,
  default ``127.0.0.1:8080``.
- ``ICAL_FILTER_FETCH_TIMEOUT``: upstream fetch timeout in seconds, default 20.
- ``ICAL_FILTER_USER_AGENT``: User-Agent sent upstream, default ``ical-filter``.
- ``ICAL_FILTER_LOG_LEVEL``: root log level, default ``INFO``.
- ``ICAL_FILTER_LOG_FORMAT``: ``text`` or ``json``, default ``text``.
- ``ICAL_FILTER_LOG_ROOT``: directory for JSON log files, unset by default.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from ical_filter.upstream import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT

DEFAULT_SOCKETADDR = "127.0.0.1:8080"
SERVICE_NAME = "ical-filter"

_LOG_FORMATS = ("text", "json")


class ConfigError(Exception):
    """Raised when service configuration is malformed or invalid."""


@dataclass
class LoggingConfig:
    """Logging configuration from ``ICAL_FILTER_LOG_*``."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class ServiceConfig:
    """Top-level configuration for the HTTP daemon."""

    host: str = "127.0.0.1"
    port: int = 8080
    fetch_timeout: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def socketaddr(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


def parse_socketaddr(value: str) -> tuple[str, int]:
    """Split ``host:port`` / ``[v6]:port`` into its parts.

    Raises
    ------
    ConfigError
        The value has no port, an empty host, or a port outside 0-65535.
    """
    value = value.strip()
    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ConfigError(f"Invalid socket address {value!r}: expected [host]:port")
        port_text = rest[1:]
    else:
        host, sep, port_text = value.rpartition(":")
        if not sep or ":" in host:
            raise ConfigError(f"Invalid socket address {value!r}: expected host:port")

    if not host:
        raise ConfigError(f"Invalid socket address {value!r}: host is empty")
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"Invalid socket address {value!r}: port is not a number") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"Invalid socket address {value!r}: port out of range")
    return host, port


def _parse_timeout(value: str) -> float:
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"ICAL_FILTER_FETCH_TIMEOUT must be a number, got {value!r}") from None
    if timeout <= 0:
        raise ConfigError(f"ICAL_FILTER_FETCH_TIMEOUT must be positive, got {value!r}")
    return timeout


def _parse_logging(environ: Mapping[str, str]) -> LoggingConfig:
    level = environ.get("ICAL_FILTER_LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"ICAL_FILTER_LOG_LEVEL is not a log level: {level!r}")

    fmt = environ.get("ICAL_FILTER_LOG_FORMAT", "text").strip().lower()
    if fmt not in _LOG_FORMATS:
        raise ConfigError(
            f"ICAL_FILTER_LOG_FORMAT must be one of {', '.join(_LOG_FORMATS)}, got {fmt!r}"
        )

    log_root = environ.get("ICAL_FILTER_LOG_ROOT") or None
    return LoggingConfig(level=level, format=fmt, log_root=log_root)


def load_config(environ: Mapping[str, str] | None = None) -> ServiceConfig:
    """Build a ``ServiceConfig`` from *environ* (defaults to ``os.environ``)."""
    if environ is None:
        environ = os.environ

    host, port = parse_socketaddr(environ.get("ICAL_FILTER_SOCKETADDR", DEFAULT_SOCKETADDR))

    timeout_raw = environ.get("ICAL_FILTER_FETCH_TIMEOUT")
    fetch_timeout = _parse_timeout(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS

    user_agent = environ.get("ICAL_FILTER_USER_AGENT", "").strip() or DEFAULT_USER_AGENT

    return ServiceConfig(
        host=host,
        port=port,
        fetch_timeout=fetch_timeout,
        user_agent=user_agent,
        logging=_parse_logging(environ),
    )
