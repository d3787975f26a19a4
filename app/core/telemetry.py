from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.core.config import settings
from app.core.db import engine


def untraced_urls() -> str:
    # Health checks and static image downloads would drown the parking spans.
    prefix = settings.uploads_url_prefix.strip("/")
    return ",".join(["v1/health", f"{prefix}/.*"])


def setup_telemetry(app) -> bool:
    """
    Trace requests and SQL for the parking API. Returns False when disabled.
    """
    if not settings.otel_enabled:
        return False

    resource = Resource.create({
        "service.name": settings.service_name,
        "service.version": app.version,
        "deployment.environment": settings.env,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{settings.otlp_endpoint}/v1/traces")))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=untraced_urls())
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)
    return True
