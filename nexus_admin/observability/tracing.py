"""
OpenTelemetry tracing setup.

A process-wide tracer for manual spans:
    from nexus_admin.observability import tracer
    with tracer.start_as_current_span("users.delete"):
        ...

Spans are only printed when NEXUS_TRACE_CONSOLE=1; swap in an OTLP exporter
for production collectors.
"""

import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

from nexus_admin import __version__

_resource = Resource.create({"service.name": "nexus-admin", "service.version": __version__})

_provider = TracerProvider(resource=_resource)

if os.getenv("NEXUS_TRACE_CONSOLE", "0") == "1":
    _provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

trace.set_tracer_provider(_provider)

tracer = trace.get_tracer("nexus-admin", __version__)
