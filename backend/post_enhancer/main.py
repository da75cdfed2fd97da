"""ASGI entry-point for the FastAPI application.

This module
1. instantiates the :class:`fastapi.FastAPI` application;
2. builds the service graph (HTTP client, job waiter, enhancer) and closes it
   again on shutdown;
3. wires the API routers located in ``post_enhancer.api``; and
4. registers global exception handlers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from post_enhancer.api import api_router
from post_enhancer.config import Settings
from post_enhancer.config import settings as default_settings
from post_enhancer.dependencies import build_services
from post_enhancer.exceptions import AuthError, EnhancerError
from post_enhancer.logging_config import setup_logging


# ---------------------------------------------------------------------------
# Logging must be configured as soon as possible so that any errors during
# import/start-up are captured.
# ---------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:  # noqa: D401
    """Wire and return the FastAPI application instance."""

    settings = settings or default_settings
    services = build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s v%s starting on port %s", settings.SERVICE_NAME, settings.VERSION, settings.PORT)
        logger.info(
            "Integrations: waiter=%s telegram=%s youtube=%s",
            settings.WAITER_MODE,
            "on" if settings.telegram_enabled else "off",
            "on" if settings.youtube_enabled else "off",
        )
        if not settings.AUTH_TOKEN:
            logger.warning("AUTH_TOKEN is not set; every protected endpoint will answer 401")
        yield
        logger.info("Shutting down: releasing pending jobs and HTTP client")
        await services.aclose()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.services = services

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(  # noqa: D401
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.error("Request validation error: %s", exc.errors())
        return JSONResponse(status_code=422, content={"detail": exc.errors()})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(  # noqa: D401
        _request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        logger.error("HTTP exception %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(EnhancerError)
    async def _app_error_handler(  # noqa: D401
        _request: Request,
        exc: EnhancerError,
    ) -> JSONResponse:
        if isinstance(exc, AuthError):
            # Already logged by the dependency; no traceback for a bad key.
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        logger.error("Application exception: %s", exc.detail, exc_info=True)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def _generic_error_handler(  # noqa: D401
        _request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    # ------------------------------------------------------------------
    # Routers
    # ------------------------------------------------------------------

    app.include_router(api_router)

    # ------------------------------------------------------------------
    # Miscellaneous endpoints
    # ------------------------------------------------------------------

    @app.get("/health")
    async def _health() -> dict:  # noqa: D401
        return {"ok": True, "service": settings.SERVICE_NAME, "version": settings.VERSION}

    return app


# Instantiate at import time so `uvicorn post_enhancer.main:app` works.
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)
