"""HTTP API: FastAPI application factory.

The app factory creates a FastAPI instance with:
- Lifespan handler that creates and closes the shared upstream ``FeedClient``
- Error envelope handlers (see ``ical_filter.api.middleware``)
- Feed endpoints at ``/v1/json`` and ``/v1/ical``
- Health endpoint at ``GET /v1/health``
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ical_filter import __version__
from ical_filter.api.deps import init_dependencies, shutdown_dependencies
from ical_filter.api.middleware import register_error_handlers
from ical_filter.api.routers.feeds import router as feeds_router
from ical_filter.config import ServiceConfig

logger = logging.getLogger(__name__)


def create_app(config: ServiceConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Service configuration. Defaults to ``ServiceConfig()``; the CLI passes
        the one loaded from the environment.
    """
    if config is None:
        config = ServiceConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_dependencies(config)
        logger.info("ical-filter %s ready on %s", __version__, config.socketaddr)

        yield

        await shutdown_dependencies()

    app = FastAPI(
        title="ical-filter",
        version=__version__,
        lifespan=lifespan,
    )
    app.router.redirect_slashes = False

    register_error_handlers(app)

    app.include_router(feeds_router)

    @app.get("/v1/health")
    async def health():
        return {"status": "ok"}

    return app
