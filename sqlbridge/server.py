from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import ValidationError as PydanticValidationError

from sqlbridge.api.v1 import api_router
from sqlbridge.config import settings
from sqlbridge.data_connectors.factory import get_registry
from sqlbridge.exceptions import SqlBridgeError
from sqlbridge.exceptions.handlers import (
    generic_exception_handler,
    sqlbridge_exception_handler,
    validation_exception_handler,
)
from sqlbridge.logging import configure_logging, get_logger
from sqlbridge.middlewares import LoggingMiddleware, MetricsMiddleware
from sqlbridge.observability import init_observability, instrument_app, shutdown_observability
from sqlbridge.services.opened_files import opened_files_registry

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting SQLBridge connector service",
        version=settings.APP_VERSION,
        dialects=get_registry().list_dialects(),
        opened_files=len(opened_files_registry.get()),
    )

    try:
        init_observability()
        instrument_app(fastapi_app)
        logger.info("Application startup completed")
        yield

    finally:
        logger.info("Shutting down SQLBridge connector service")
        try:
            shutdown_observability()
        except Exception as e:
            logger.error("Error shutting down observability", error=str(e))


def create_app() -> FastAPI:
    """Create FastAPI application with all configurations."""
    fastapi_app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Query, introspect and export databases and data files through one API",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    # Metrics before logging so logging wraps the complete request
    if settings.ENABLE_METRICS:
        fastapi_app.add_middleware(MetricsMiddleware)
    fastapi_app.add_middleware(LoggingMiddleware)

    fastapi_app.add_exception_handler(SqlBridgeError, sqlbridge_exception_handler)  # type: ignore
    fastapi_app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    fastapi_app.add_exception_handler(PydanticValidationError, validation_exception_handler)  # type: ignore
    fastapi_app.add_exception_handler(Exception, generic_exception_handler)  # type: ignore

    @fastapi_app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.OTEL_SERVICE_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT.value,
            "dialects": get_registry().list_dialects(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @fastapi_app.get("/metrics", tags=["Monitoring"])
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    fastapi_app.include_router(api_router, prefix="/api")

    logger.info("FastAPI application created")
    return fastapi_app


app = create_app()
