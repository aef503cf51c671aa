import logging
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # type: ignore[attr-defined]
    OTLPSpanExporter as OTLPGrpcExporter,
)
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[attr-defined]
    OTLPSpanExporter as OTLPHttpExporter,
)
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from .config import ServiceSettings

_LOGGER = logging.getLogger(__name__)
_INSTRUMENTED_APPS: set[int] = set()

TRACER_NAME = "shopdesk"

# Health and metrics endpoints are polled constantly and carry no business context.
EXCLUDED_URLS = "health,metrics"


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


def _span_processor(settings: ServiceSettings) -> Optional[SpanProcessor]:
    endpoint = settings.tracing_endpoint
    if endpoint is None:
        return None
    if settings.tracing_protocol == "grpc":
        exporter = OTLPGrpcExporter(endpoint=endpoint, insecure=settings.tracing_insecure)
    else:
        exporter = OTLPHttpExporter(endpoint=endpoint)
    return BatchSpanProcessor(exporter)


def _build_provider(settings: ServiceSettings) -> TracerProvider:
    resource = Resource.create(
        {
            "service.name": settings.app_name,
            "service.namespace": "shopdesk",
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(settings.tracing_sample_rate)),
    )
    processor = _span_processor(settings)
    if processor is None:
        _LOGGER.warning("No OTLP endpoint configured for %s; spans stay in-process", settings.app_name)
    else:
        provider.add_span_processor(processor)
    return provider


def _global_provider(settings: ServiceSettings) -> TracerProvider:
    """Install the SDK provider once per process and return whichever one is active."""

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        return current
    trace.set_tracer_provider(_build_provider(settings))
    installed = trace.get_tracer_provider()
    if not isinstance(installed, TracerProvider):  # pragma: no cover - foreign provider won the race
        raise RuntimeError("OpenTelemetry tracer provider is not an SDK provider")
    return installed


def configure_tracing(app: FastAPI, settings: ServiceSettings) -> None:
    """Instrument ``app`` with OpenTelemetry when ``settings.enable_tracing`` is set.

    Instrumenting the same app twice is a no-op.
    """

    if not settings.enable_tracing or id(app) in _INSTRUMENTED_APPS:
        return
    provider = _global_provider(settings)
    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider, excluded_urls=EXCLUDED_URLS)
    _INSTRUMENTED_APPS.add(id(app))
