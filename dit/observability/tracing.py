# dit/observability/tracing.py
# OpenTelemetry spans for requests and store queries, printed to the console exporter

from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

SERVICE_NAME = "dit-api"


def init_otel(app=None, engine=None, service_name: str = SERVICE_NAME) -> trace.Tracer:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
    if engine is not None:
        # Async engines are instrumented through their sync core
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

    return trace.get_tracer(service_name)
