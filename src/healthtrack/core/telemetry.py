"""OpenTelemetry initialization and request-span helpers."""

from __future__ import annotations

import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

logger = logging.getLogger(__name__)

SERVICE_NAME = "healthtrack"

# True once the global TracerProvider has been installed.  Re-running the app
# factory in one process (tests, reloads) must not override it again.
_tracer_provider_installed: bool = False


def init_telemetry(service_name: str = SERVICE_NAME) -> trace.Tracer:
    """Initialize OpenTelemetry tracing.

    When OTEL_EXPORTER_OTLP_ENDPOINT is set, installs a TracerProvider with an
    OTLP gRPC exporter on the first call.  Otherwise returns a tracer from the
    default (no-op) provider.
    """
    global _tracer_provider_installed  # noqa: PLW0603

    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")

    if not endpoint:
        logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, using no-op tracer")
        return trace.get_tracer(service_name)

    if _tracer_provider_installed:
        logger.debug("TracerProvider already initialized; reusing it for %s", service_name)
        return trace.get_tracer(service_name)

    # Import exporter only when needed
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))

    trace.set_tracer_provider(provider)
    _tracer_provider_installed = True
    logger.info("Telemetry initialized: endpoint=%s", endpoint)

    return trace.get_tracer(service_name)


def get_tracer(name: str = SERVICE_NAME) -> trace.Tracer:
    """Get a tracer from the current provider."""
    return trace.get_tracer(name)


def tag_user_span(span: trace.Span, user_id: int) -> None:
    """Attach the authenticated user id to *span*."""
    span.set_attribute("healthtrack.user_id", user_id)
