"""
Service-specific telemetry for the uptime service.

Domain metrics and FastAPI instrumentation on top of the shared
``uptime_common.observability`` module.
"""

import logging

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from uptime_common.observability import (
    MetricsMiddleware,
    create_counter,
    create_gauge,
    create_histogram,
)

logger = logging.getLogger("telemetry")

# ── Probing ──────────────────────────────────────────────────────

PROBES_TOTAL = create_counter(
    "probes_total",
    "Probe results by website and health state",
    ["website", "state"],
)

PROBE_DURATION = create_histogram(
    "probe_duration_seconds",
    "Wall time of a single website probe",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    labelnames=["website"],
)

TICK_DURATION = create_histogram(
    "tick_duration_seconds",
    "Wall time of one probe-and-record tick over all websites",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

# ── Run history ──────────────────────────────────────────────────

RUN_APPENDS_TOTAL = create_counter(
    "run_appends_total",
    "Observations recorded, by whether they extended the open run or started a new one",
    ["outcome"],
)

APPEND_FAILURES_TOTAL = create_counter(
    "append_failures_total",
    "Observations that could not be recorded, by reason",
    ["reason"],
)

MIGRATED_RUNS_TOTAL = create_counter(
    "migrated_runs_total",
    "Runs produced by migrating the legacy check log",
)

WEBSITE_OK_RATIO = create_gauge(
    "website_ok_ratio",
    "Share of ok runs per website as of the last dashboard render (0-1)",
    ["website"],
)

# ── HTTP ─────────────────────────────────────────────────────────

HTTP_REQUESTS = create_counter(
    "http_requests_total",
    "Total HTTP requests by method and path",
    ["method", "path", "status"],
)


def init(app):
    """Wire HTTP metrics and OpenTelemetry instrumentation into the app."""
    app.add_middleware(MetricsMiddleware, counter=HTTP_REQUESTS, ignored_paths={"/metrics"})

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("FastAPI instrumentation failed: %s", e)

    logger.info("Service telemetry initialised")
