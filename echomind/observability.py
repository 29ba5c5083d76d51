"""
Tracing and metrics for the EchoMind pronunciation service.
"""

import asyncio
from functools import wraps
from typing import Any, Callable, Dict, Optional

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = structlog.get_logger()

tracer: Optional[trace.Tracer] = None
meter: Optional[metrics.Meter] = None

# Metrics instruments
assessment_counter: Optional[metrics.Counter] = None
correction_counter: Optional[metrics.Counter] = None
quota_rejection_counter: Optional[metrics.Counter] = None
similarity_score_histogram: Optional[metrics.Histogram] = None
operation_duration: Optional[metrics.Histogram] = None


def setup_observability(
    service_name: str = "echomind-pronunciation-service",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    enable_console_export: bool = False
) -> None:
    """
    Set up OpenTelemetry tracing and metrics.

    Args:
        service_name: Name of the service for tracing
        service_version: Version of the service
        otlp_endpoint: OTLP endpoint for trace/metric export
        enable_console_export: Whether to also print spans and metrics
    """
    global tracer, meter
    global assessment_counter, correction_counter, quota_rejection_counter
    global similarity_score_histogram, operation_duration

    logger.info(
        "Setting up observability",
        service_name=service_name,
        service_version=service_version,
        otlp_endpoint=otlp_endpoint
    )

    resource = Resource.create({
        "service.name": service_name,
        "service.version": service_version,
    })

    trace_provider = TracerProvider(resource=resource)
    if otlp_endpoint:
        trace_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    if enable_console_export:
        trace_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer(__name__)

    metric_readers = []
    if otlp_endpoint:
        metric_readers.append(PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=otlp_endpoint),
            export_interval_millis=30000
        ))
    if enable_console_export:
        metric_readers.append(PeriodicExportingMetricReader(
            exporter=ConsoleMetricExporter(),
            export_interval_millis=60000
        ))

    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))
    meter = metrics.get_meter(__name__)

    assessment_counter = meter.create_counter(
        name="pronunciation_assessments_total",
        description="Pronunciation attempts scored, by workflow, verdict and transcript source",
        unit="1"
    )

    correction_counter = meter.create_counter(
        name="voice_corrections_total",
        description="Cloned-voice corrections attempted, by mode and outcome",
        unit="1"
    )

    quota_rejection_counter = meter.create_counter(
        name="voice_quota_rejections_total",
        description="Requests rejected by the daily voice clone limit",
        unit="1"
    )

    similarity_score_histogram = meter.create_histogram(
        name="pronunciation_similarity_score",
        description="Similarity scores on the 0-100 scale",
        unit="1"
    )

    operation_duration = meter.create_histogram(
        name="pronunciation_operation_duration_seconds",
        description="Workflow duration in seconds",
        unit="s"
    )

    logger.info("Observability setup completed")


def instrument_fastapi_app(app) -> None:
    """
    Instrument FastAPI application and outbound httpx calls.

    Args:
        app: FastAPI application instance
    """
    if tracer is None:
        logger.warning("Tracer not initialized, call setup_observability() first")
        return

    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    LoggingInstrumentor().instrument(set_logging_format=True)

    logger.info("FastAPI application instrumented with OpenTelemetry")


def _annotate_failure(span, error: Exception) -> None:
    span.record_exception(error)
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)


def trace_function(operation_name: Optional[str] = None):
    """
    Decorator to trace function execution.

    Args:
        operation_name: Optional custom operation name for the span
    """
    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            if tracer is None:
                return await func(*args, **kwargs)

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("function.name", func.__name__)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _annotate_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            if tracer is None:
                return func(*args, **kwargs)

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("function.name", func.__name__)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _annotate_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def record_assessment_metrics(
    workflow: str,
    verdict: str,
    source: str,
    score: int,
    processing_time: float
) -> None:
    """
    Record metrics for a scored pronunciation attempt.

    Args:
        workflow: "sentence" or "word"
        verdict: "Correct" or "Incorrect"
        source: "provider" or "offline"
        score: Similarity score on the 0-100 scale
        processing_time: Workflow duration in seconds
    """
    if assessment_counter is None:
        return

    attributes = {"workflow": workflow, "verdict": verdict, "source": source}
    assessment_counter.add(1, attributes)
    similarity_score_histogram.record(score, attributes)
    operation_duration.record(processing_time, {"workflow": workflow})

    logger.info(
        "Assessment metrics recorded",
        workflow=workflow,
        verdict=verdict,
        source=source,
        score=score,
        processing_time=processing_time
    )


def record_correction_metrics(mode: str, success: bool) -> None:
    """Count one correction attempt in ``mode`` ("ephemeral" or "persisted")."""
    if correction_counter is None:
        return
    correction_counter.add(1, {"mode": mode, "success": str(success).lower()})


def record_quota_rejection(endpoint: str) -> None:
    if quota_rejection_counter is None:
        return
    quota_rejection_counter.add(1, {"endpoint": endpoint})


def get_trace_context() -> Dict[str, Any]:
    """
    Get current trace context information.

    Returns:
        Dict with trace ID and span ID if available
    """
    current_span = trace.get_current_span()
    if current_span is None or not current_span.is_recording():
        return {}

    span_context = current_span.get_span_context()
    return {
        "trace_id": f"{span_context.trace_id:032x}",
        "span_id": f"{span_context.span_id:016x}",
    }


def add_trace_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor that stamps log events with the active trace ids."""
    for key, value in get_trace_context().items():
        event_dict.setdefault(key, value)
    return event_dict
