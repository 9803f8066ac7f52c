"""
Main entrypoint for the EduSync API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  The ``create_app`` function builds and
configures the app, which is then instantiated at module import time
as ``app``, e.g.::

    uvicorn edusync_api.app.main:app --reload

One ``httpx.AsyncClient`` is opened at startup and shared by the
backend and auth clients; it is closed at shutdown.
"""

import logging

import httpx
from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.auth import AuthClient
from .core.backend import BackendClient
from .core.config import settings
from .core.logging_config import setup_logging
from .services.event_service import EventFeedRegistry


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  Backend clients are
        attached to ``app.state`` when the application starts.
    """
    # Initialise logging before anything else so that startup can log.
    setup_logging(settings.log_level, settings.log_file or None)
    logger = logging.getLogger(__name__)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.include_router(v1_router, prefix="/api/v1")
    app.state.feeds = EventFeedRegistry(max_feeds=settings.max_event_feeds)

    @app.on_event("startup")
    async def startup_event() -> None:
        http_client = httpx.AsyncClient(timeout=settings.request_timeout)
        app.state.http_client = http_client
        app.state.backend = BackendClient(
            base_url=settings.backend_url,
            api_key=settings.backend_anon_key,
            client=http_client,
        )
        app.state.auth = AuthClient(
            base_url=settings.backend_url,
            api_key=settings.backend_anon_key,
            client=http_client,
        )
        if not settings.backend_anon_key:
            logger.warning("BACKEND_ANON_KEY is not set; backend requests will be rejected")
        logger.info("Using backend at %s", settings.backend_url)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
