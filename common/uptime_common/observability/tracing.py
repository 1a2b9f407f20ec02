import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)


def _traces_endpoint(endpoint: str) -> str:
    endpoint = endpoint.rstrip("/")
    if endpoint.endswith("/v1/traces"):
        return endpoint
    return f"{endpoint}/v1/traces"


def init_tracing(service_name: str, endpoint: str | None = None) -> None:
    """
    Install a global TracerProvider exporting spans over OTLP/HTTP.

    Args:
        service_name: ``service.name`` resource attribute (e.g. ``"uptime"``).
        endpoint: Collector base URL. Defaults to
            ``OTEL_EXPORTER_OTLP_ENDPOINT``, then ``http://localhost:4318``.
    """
    if endpoint is None:
        endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318")
    traces_endpoint = _traces_endpoint(endpoint)

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=traces_endpoint)))
    trace.set_tracer_provider(provider)

    logger.info("Tracing initialized for %s (exporting to %s)", service_name, traces_endpoint)


def shutdown_tracing() -> None:
    """Flush and shut down the global tracer provider, if it is an SDK one."""
    provider = trace.get_tracer_provider()
    if not hasattr(provider, "shutdown"):
        return
    try:
        provider.shutdown()
        logger.info("Tracer shutdown complete")
    except Exception as exc:
        logger.warning("Tracer shutdown warning: %s", exc)
