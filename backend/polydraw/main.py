"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that sets up
logging, CORS middleware, includes the polygon, auth and page routers, and
exposes health and public map configuration endpoints.

Example:
    The application can be run with uvicorn:
        $ uvicorn polydraw.main:app --reload

    Or imported and used programmatically:
        >>> from polydraw.main import app
        >>> # Use app in ASGI server
"""

from typing import Any

import fastapi
from fastapi.middleware import cors

from polydraw.api import auth, pages, polygons
from polydraw.core import config, log


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Configures the package logger, includes the polygon, auth and page
    routers, adds CORS middleware and registers the health check and map
    configuration endpoints.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    log.configure_logging(settings.log_level)
    app = fastapi.FastAPI(title="Polygon Drawing Tool", version="0.1.0")

    app.include_router(auth.router)
    app.include_router(polygons.router)
    app.include_router(pages.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers."""
        return {"status": "ok"}

    @app.get("/api/config")
    async def map_config(
        settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
    ) -> dict[str, Any]:
        """Public map settings the drawing page starts from."""
        return {
            "default_center": list(settings.default_center),
            "default_zoom": settings.default_zoom,
            "poi_enabled": settings.poi_enabled,
            "poi_min_zoom": settings.poi_min_zoom,
            "polygon_zoom_threshold": settings.polygon_zoom_threshold,
        }

    return app


app = create_app()
