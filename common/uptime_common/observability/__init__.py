"""
uptime_common.observability: logging, metrics and tracing for the uptime
service and its tools.

Submodules
----------
logging      Structured JSON logging with OTel trace-context injection.
metrics      Prometheus metric factories and helpers.
tracing      OpenTelemetry tracing (OTLP over HTTP).
middleware   Starlette HTTP-metrics middleware.
testing      In-memory tracing exporter & metric-reset helpers for tests.

Quick start
-----------
::

    from uptime_common.observability import init_observability, get_logger

    init_observability("uptime", "0.4.0")
    logger = get_logger("uptime")
"""

import logging as _logging
import os as _os

from .logging import JsonTraceFormatter, get_logger, setup_logging
from .metrics import (
    create_counter,
    create_gauge,
    create_histogram,
    create_info,
    create_service_info,
    metrics_response,
)
from .middleware import MetricsMiddleware
from .testing import get_spans_by_name, reset_metrics, setup_test_tracing
from .tracing import init_tracing, shutdown_tracing


def init_observability(
    service_name: str,
    version: str,
    *,
    log_level: int = _logging.INFO,
    environment: str | None = None,
) -> None:
    """
    One-call bootstrap for logging, tracing, and the service-info metric.

    Tracing is only started when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set, and a
    failure to start it is logged rather than raised: a missing collector
    must not keep the probe loop from running.
    """
    setup_logging(log_level)
    logger = get_logger(service_name)

    if _os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT"):
        try:
            init_tracing(service_name)
        except Exception as exc:
            logger.warning("Tracing init failed (non-fatal): %s", exc)
    else:
        logger.debug("Tracing disabled (OTEL_EXPORTER_OTLP_ENDPOINT not set)")

    create_service_info(service_name, version, environment)

    logger.info("Observability initialised for %s v%s", service_name, version)


__all__ = [
    "init_observability",
    "setup_logging",
    "get_logger",
    "JsonTraceFormatter",
    "create_counter",
    "create_histogram",
    "create_info",
    "create_gauge",
    "create_service_info",
    "metrics_response",
    "init_tracing",
    "shutdown_tracing",
    "MetricsMiddleware",
    "setup_test_tracing",
    "get_spans_by_name",
    "reset_metrics",
]
