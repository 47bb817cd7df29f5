"""Shared dependencies for the HTTP API.

Provides the process-wide ``FeedClient`` used by the feed routers. The client
is created in the app lifespan and closed on shutdown; tests replace it through
``app.dependency_overrides[get_feed_client]``.
"""

from __future__ import annotations

import logging

from ical_filter.config import ServiceConfig
from ical_filter.upstream import FeedClient

logger = logging.getLogger(__name__)

_feed_client: FeedClient | None = None


def init_dependencies(config: ServiceConfig) -> None:
    """Create the shared ``FeedClient`` from *config*."""
    global _feed_client
    _feed_client = FeedClient(timeout=config.fetch_timeout, user_agent=config.user_agent)
    logger.debug(
        "FeedClient ready (timeout=%ss, user_agent=%s)", config.fetch_timeout, config.user_agent
    )


async def shutdown_dependencies() -> None:
    """Close the shared ``FeedClient``."""
    global _feed_client
    if _feed_client is not None:
        await _feed_client.aclose()
        _feed_client = None


def get_feed_client() -> FeedClient:
    """FastAPI dependency returning the shared ``FeedClient``."""
    if _feed_client is None:
        raise RuntimeError("FeedClient not initialized")
    return _feed_client
