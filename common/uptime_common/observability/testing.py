"""
Test helpers for the observability stack: an in-memory span exporter and a
way to wipe user collectors from the default Prometheus registry.
"""

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import REGISTRY


def setup_test_tracing(service_name: str = "test-service") -> InMemorySpanExporter:
    """
    Install a TracerProvider backed by an InMemorySpanExporter and return the
    exporter. Replaces any provider installed by an earlier test.
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    # set_tracer_provider only works once per process; reset the guard
    trace._TRACER_PROVIDER = None
    trace._TRACER_PROVIDER_SET_ONCE._done = False
    trace.set_tracer_provider(provider)
    return exporter


def get_spans_by_name(exporter: InMemorySpanExporter, name: str) -> list[ReadableSpan]:
    """Finished spans whose name equals *name*."""
    return [s for s in exporter.get_finished_spans() if s.name == name]


def reset_metrics() -> None:
    """
    Unregister every user-created collector from the default registry.

    Platform collectors (``gc``, ``process``, ``platform``) have no ``_name``
    and are left alone.
    """
    seen = set()
    for collector in list(REGISTRY._names_to_collectors.values()):
        if not hasattr(collector, "_name") or id(collector) in seen:
            continue
        seen.add(id(collector))
        try:
            REGISTRY.unregister(collector)
        except KeyError:
            pass
