"""
OpenTelemetry Tracing

``tracer`` is usable at import time; spans are no-ops until ``setup_tracing``
installs an SDK tracer provider.
"""

import logging

from opentelemetry import trace
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter


logger = logging.getLogger(__name__)

# Resolves through the global proxy provider, so spans started after
# setup_tracing() go to the SDK provider.
tracer = trace.get_tracer("bidmarket")

_initialized = False


def setup_tracing(service_name: str = "bidmarket-backend", console_export: bool = False, enable: bool = True) -> None:
    """
    Initialize OpenTelemetry tracing and Django request instrumentation.

    Args:
        service_name: Name of the service for tracing
        console_export: Print finished spans to stdout
        enable: Enable/disable tracing
    """
    global _initialized

    if _initialized:
        logger.warning("Tracing already initialized. Skipping.")
        return

    if not enable:
        logger.info("Tracing disabled via configuration")
        return

    tracer_provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    if console_export:
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(tracer_provider)

    DjangoInstrumentor().instrument()

    _initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")


def add_span_attributes(span: trace.Span, **attributes) -> None:
    """Add custom attributes to a span, skipping None values."""
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, str(value))
