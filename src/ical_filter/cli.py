"""CLI for ical-filter: run the HTTP daemon."""

from __future__ import annotations

import sys

import click
import uvicorn

from ical_filter import __version__
from ical_filter.config import SERVICE_NAME, ConfigError, ServiceConfig, load_config
from ical_filter.core.logging import configure_logging
from ical_filter.core.telemetry import init_telemetry


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """ical-filter: normalize and filter iCalendar feeds over HTTP."""


def _load_or_exit() -> ServiceConfig:
    try:
        return load_config()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Override the host from ICAL_FILTER_SOCKETADDR")
@click.option(
    "--port", type=int, default=None, help="Override the port from ICAL_FILTER_SOCKETADDR"
)
def serve(host: str | None, port: int | None) -> None:
    """Serve /v1/json and /v1/ical until interrupted."""
    from ical_filter.api.app import create_app

    config = _load_or_exit()
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    configure_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_root=config.logging.log_root,
        service_name=SERVICE_NAME,
    )
    init_telemetry(SERVICE_NAME)

    click.echo(f"Starting ical-filter on {config.socketaddr}")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_config=None,
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
