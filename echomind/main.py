"""Main FastAPI application for the EchoMind pronunciation service."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from echomind import __version__
from echomind.api.errors import register_exception_handlers
from echomind.api.health import router as health_router
from echomind.api.practice import router as practice_router
from echomind.api.pronunciation import router as pronunciation_router
from echomind.config import settings
from echomind.middleware import (
    MetricsMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    get_metrics
)
from echomind.models.api_models import HealthResponse
from echomind.observability import (
    add_trace_context,
    instrument_fastapi_app,
    setup_observability
)
from echomind.services.pronunciation_service import (
    get_pronunciation_service,
    shutdown_pronunciation_service
)

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "Starting EchoMind pronunciation service",
        port=settings.port,
        host=settings.host,
        user_store=settings.user_store
    )

    setup_observability(
        service_name="echomind-pronunciation-service",
        service_version=__version__,
        otlp_endpoint=settings.otlp_endpoint
    )
    instrument_fastapi_app(app)

    # Build providers and repositories eagerly so misconfiguration fails at startup
    get_pronunciation_service()

    yield

    await shutdown_pronunciation_service()
    logger.info("Shutting down EchoMind pronunciation service")


app = FastAPI(
    title="EchoMind Pronunciation Service",
    description="Pronunciation assessment with corrections spoken in the learner's own cloned voice",
    version=__version__,
    lifespan=lifespan
)

# Last added runs first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(MetricsMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(practice_router)
app.include_router(pronunciation_router)
app.include_router(health_router)


@app.get("/healthz", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=__version__
    )


@app.get("/metrics")
async def metrics_endpoint():
    """Application metrics endpoint."""
    return {
        "timestamp": datetime.utcnow().isoformat(),
        "metrics": get_metrics()
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "echomind.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False
    )
