from typing import Any, List, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from sqlbridge.config import settings

# Logger will be set after avoiding circular import
logger = None


def _get_logger():
    """Get logger instance, avoiding circular import."""
    global logger
    if logger is None:
        from sqlbridge.logging import get_logger

        logger = get_logger(__name__)
    return logger


# Global instances
_trace_provider: Optional[TracerProvider] = None
_span_processors: List[BatchSpanProcessor] = []


def create_resource() -> Resource:
    """Create OpenTelemetry resource with service information."""
    return Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": settings.OTEL_SERVICE_VERSION,
            "service.environment": settings.ENVIRONMENT.value,
        }
    )


def setup_tracing() -> None:
    """Configure OpenTelemetry tracing with an OTLP exporter.

    Without ``TRACING_ENABLED`` the no-op provider stays in place and spans
    opened by the connections cost nothing.
    """
    global _trace_provider

    if not settings.TRACING_ENABLED or _trace_provider is not None:
        return

    provider = TracerProvider(
        resource=create_resource(),
        sampler=TraceIdRatioBased(rate=settings.TRACE_SAMPLING_RATE),
    )

    if settings.OTLP_ENDPOINT:
        try:
            processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
            provider.add_span_processor(processor)
            _span_processors.append(processor)
            _get_logger().info("OTLP gRPC trace exporter configured", endpoint=settings.OTLP_ENDPOINT)
        except Exception as e:
            _get_logger().warning("Failed to configure OTLP gRPC exporter", error=str(e))

    trace.set_tracer_provider(provider)
    _trace_provider = provider
    _get_logger().info(
        "OpenTelemetry tracing configured",
        sampling_rate=settings.TRACE_SAMPLING_RATE,
        exporters_count=len(_span_processors),
    )


def instrument_app(app: Any) -> None:
    """Instrument FastAPI application with OpenTelemetry."""
    if not settings.TRACING_ENABLED:
        return
    try:
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=trace.get_tracer_provider(),
            excluded_urls="/health,/metrics",
        )
        _get_logger().info("FastAPI instrumentation enabled")
    except Exception as e:
        _get_logger().error("Failed to instrument application", error=str(e))


def init_observability() -> None:
    """Initialize all observability components."""
    setup_tracing()


def shutdown_observability() -> None:
    """Flush pending spans and shut the provider down."""
    global _trace_provider

    for processor in _span_processors:
        try:
            processor.force_flush(timeout_millis=1000)
        except Exception as e:
            _get_logger().warning("Failed to flush span processor", error=str(e))
    _span_processors.clear()

    if _trace_provider is not None:
        _trace_provider.shutdown()
        _trace_provider = None
        _get_logger().info("OpenTelemetry tracing shut down")
