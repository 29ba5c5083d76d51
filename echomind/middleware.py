"""
HTTP middleware for the EchoMind pronunciation service.
"""

import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()

CORRELATION_HEADERS = ("X-Request-ID", "X-Call-ID")


def resolve_correlation_id(request: Request) -> str:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return f"req_{uuid.uuid4().hex[:16]}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging with a per-request correlation id.

    The id is taken from ``X-Request-ID`` or ``X-Call-ID``, bound to the
    structlog context, stored on ``request.state`` and echoed back.
    """

    def __init__(self, app, exclude_paths: Optional[set] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or {"/healthz", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = resolve_correlation_id(request)
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        quiet = request.url.path in self.exclude_paths
        start_time = time.time()
        if not quiet:
            logger.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                user_agent=request.headers.get("User-Agent", "unknown")
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                error_type=type(e).__name__,
                process_time_ms=round((time.time() - start_time) * 1000, 2)
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "InternalServerError",
                    "message": "An unexpected error occurred",
                    "details": {},
                    "correlation_id": correlation_id,
                    "timestamp": datetime.utcnow().isoformat()
                },
                headers={"X-Request-ID": correlation_id}
            )

        if not quiet:
            logger.info(
                "Request completed",
                status_code=response.status_code,
                process_time_ms=round((time.time() - start_time) * 1000, 2)
            )

        response.headers["X-Request-ID"] = correlation_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.update({
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
            "Referrer-Policy": "strict-origin-when-cross-origin"
        })

        return response


class RequestStats:
    """In-process request counters shown at ``/metrics``."""

    def __init__(self):
        self.request_count = 0
        self.error_count = 0
        self.total_processing_time = 0.0

    def record(self, status_code: int, processing_time: float) -> None:
        self.request_count += 1
        self.total_processing_time += processing_time
        if status_code >= 400:
            self.error_count += 1

    def snapshot(self) -> Dict[str, Any]:
        avg_processing_time = (
            self.total_processing_time / self.request_count
            if self.request_count > 0 else 0
        )

        return {
            "total_requests": self.request_count,
            "error_count": self.error_count,
            "error_rate": self.error_count / self.request_count if self.request_count > 0 else 0,
            "avg_processing_time_ms": round(avg_processing_time * 1000, 2)
        }


request_stats = RequestStats()


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect basic metrics about requests.
    """

    def __init__(self, app, stats: Optional[RequestStats] = None):
        super().__init__(app)
        self.stats = stats or request_stats

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            self.stats.record(500, time.time() - start_time)
            raise

        self.stats.record(response.status_code, time.time() - start_time)
        return response


def get_metrics() -> Dict[str, Any]:
    """Get current application metrics."""
    return request_stats.snapshot()
