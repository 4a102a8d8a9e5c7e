"""Logging and OpenTelemetry tracing setup.

Usage:
    from aragog.telemetry import init_telemetry, shutdown_telemetry

    init_telemetry(settings)
    ...  # run crawls
    shutdown_telemetry()

Components never touch the global tracer provider directly: publishers take
a ``TraceContextInjector`` and call ``inject_current_context()`` once per
offer to obtain the carrier sent along with it.
"""

import logging
from typing import Dict, Mapping, Optional, Protocol

import structlog
from opentelemetry import context as otel_context
from opentelemetry import propagate, trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from aragog.config import Settings

logger = structlog.get_logger(__name__)

_provider: Optional[TracerProvider] = None


class TraceContextInjector(Protocol):
    """Producer of serialized trace context for outgoing messages."""

    def inject_current_context(self) -> Dict[str, str]:
        ...


class OpenTelemetryInjector:
    """Serialize the active OpenTelemetry context with the global propagator."""

    def inject_current_context(self) -> Dict[str, str]:
        carrier: Dict[str, str] = {}
        propagate.inject(carrier)
        return carrier


def extract_context(carrier: Mapping[str, str]) -> otel_context.Context:
    """Rebuild a context from a carrier produced by ``inject_current_context``.

    This is what the backend collector does on receipt of an offer.
    """
    return propagate.extract(dict(carrier))


def add_trace_context(_, __, event_dict):
    """structlog processor attaching the active trace/span ids."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure structlog for stdout output.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        fmt: 'json' for one JSON object per line, 'console' for humans
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def init_tracing(service_name: str, exporter: str = "otlp", endpoint: str = "") -> TracerProvider:
    """Install the global tracer provider and W3C trace-context propagator.

    Args:
        service_name: Value of the ``service.name`` resource attribute
        exporter: 'otlp' (gRPC collector), 'console' (stdout) or 'none'
        endpoint: OTLP collector endpoint, used when exporter is 'otlp'

    Returns:
        The installed TracerProvider (the existing one on repeated calls)
    """
    global _provider

    if _provider is not None:
        return _provider

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))

    if exporter == "otlp":
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint or None)))
    elif exporter == "console":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    elif exporter != "none":
        logger.warning("unknown_trace_exporter", exporter=exporter, fallback="console")
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    propagate.set_global_textmap(TraceContextTextMapPropagator())
    _provider = provider

    logger.info("tracer_initialized", service_name=service_name, exporter=exporter)
    return provider


def init_telemetry(settings: Settings) -> TracerProvider:
    """Configure logging and tracing from settings. Call before the first crawl."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    return init_tracing(
        settings.TELEMETRY_SERVICE_NAME,
        exporter=settings.TELEMETRY_EXPORTER,
        endpoint=settings.TELEMETRY_ENDPOINT,
    )


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the provider down. Call after the last crawl."""
    global _provider

    if _provider is None:
        return
    _provider.force_flush()
    _provider.shutdown()
    _provider = None
    logger.info("tracer_shutdown")
