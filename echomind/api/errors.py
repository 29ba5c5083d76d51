"""
Error rendering for the HTTP surface.
"""

from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from echomind.models.api_models import ErrorResponse
from echomind.observability import record_quota_rejection
from echomind.services.exceptions import EchoMindError, QuotaExceeded

logger = structlog.get_logger()


def correlation_id_for(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or request.headers.get("X-Request-ID", "unknown")


def create_error_response(
    error_type: str,
    message: str,
    correlation_id: str,
    status_code: int = 500,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """Create standardized error response."""
    error_response = ErrorResponse(
        error=error_type,
        message=message,
        details=details or {},
        correlation_id=correlation_id,
        timestamp=datetime.utcnow()
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json")
    )


async def echomind_error_handler(request: Request, exc: EchoMindError) -> JSONResponse:
    if isinstance(exc, QuotaExceeded):
        record_quota_rejection(request.url.path)

    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.kind, path=request.url.path)
        # Persistence details stay in the logs
        return create_error_response(
            exc.kind,
            "An internal error occurred. Please try again later.",
            correlation_id_for(request),
            status_code=exc.status_code
        )

    logger.info("Request rejected", error=exc.kind, message=exc.message, path=request.url.path)
    return create_error_response(
        exc.kind,
        exc.message,
        correlation_id_for(request),
        status_code=exc.status_code,
        details=exc.details
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EchoMindError, echomind_error_handler)
