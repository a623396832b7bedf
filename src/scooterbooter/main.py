"""Main entry point for the ScooterBooter graph service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from scooterbooter import __version__
from scooterbooter.api.v1 import api_router
from scooterbooter.core.errors import GraphError
from scooterbooter.core.settings import settings
from scooterbooter.db import build_engine, build_sessionmaker, create_tables
from scooterbooter.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def handle_graph_error(request: Request, exc: GraphError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Bad Request") if errors else "Bad Request"
    return JSONResponse(status_code=400, content={"message": message})


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Build the application.

    When ``container`` is given it is used as is; otherwise the lifespan
    creates the store schema and wires the real collaborators from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            app.state.container = container
            yield
            return
        engine = build_engine(settings.database_url, echo=settings.sql_debug)
        await create_tables(engine)
        services = ServiceContainer.from_settings(settings, build_sessionmaker(engine))
        app.state.container = services
        try:
            yield
        finally:
            await services.aclose()
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Social graph, feed aggregation and notification API",
        version=__version__,
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    app.add_exception_handler(GraphError, handle_graph_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    return app


configure_logging(settings.log_level)
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("scooterbooter.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
