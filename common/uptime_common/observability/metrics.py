"""
Prometheus metric factories that tolerate repeated registration.

Module-level metrics get re-created whenever a module is re-imported (test
collection, ``importlib.reload``), so every factory hands back the collector
already registered under the same name instead of raising. Also provides
``create_service_info`` for the build/version metric and ``metrics_response``
for the ``/metrics`` endpoint.
"""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)


def _lookup(name: str):
    for collector in list(REGISTRY._names_to_collectors.values()):
        if getattr(collector, "_name", None) == name:
            return collector
        if getattr(collector, "_original_name", None) == name:
            return collector
    return None


def _get_or_create(metric_cls, name, documentation, **kwargs):
    """Create a metric or return the one already registered under *name*."""
    existing = _lookup(name)
    if existing is not None:
        return existing
    try:
        return metric_cls(name, documentation, **kwargs)
    except ValueError:
        # Counter "x" registers "x_total" and "x_created"; a caller asking for
        # the suffixed name collides without matching _name.
        existing = _lookup(name.removesuffix("_total"))
        if existing is None:
            raise
        return existing


def create_counter(name: str, documentation: str, labelnames: list[str] | None = None) -> Counter:
    """Create (or retrieve) a Prometheus Counter."""
    return _get_or_create(Counter, name, documentation, labelnames=labelnames or [])


def create_histogram(
    name: str,
    documentation: str,
    buckets: list[float] | None = None,
    labelnames: list[str] | None = None,
) -> Histogram:
    """Create (or retrieve) a Prometheus Histogram."""
    kwargs = {"labelnames": labelnames or []}
    if buckets:
        kwargs["buckets"] = buckets
    return _get_or_create(Histogram, name, documentation, **kwargs)


def create_gauge(name: str, documentation: str, labelnames: list[str] | None = None) -> Gauge:
    """Create (or retrieve) a Prometheus Gauge."""
    return _get_or_create(Gauge, name, documentation, labelnames=labelnames or [])


def create_info(name: str, documentation: str) -> Info:
    """Create (or retrieve) a Prometheus Info metric."""
    return _get_or_create(Info, name, documentation)


def create_service_info(service_name: str, version: str, environment: str | None = None) -> Info:
    """
    Create and populate the service-metadata Info metric.

    Args:
        service_name: Metric name (e.g. ``"uptime"``); dashes are not valid
            in Prometheus names and are replaced with underscores.
        version: Service version string.
        environment: Deployment environment. Falls back to the
            ``ENVIRONMENT`` env-var, then ``"development"``.
    """
    info = create_info(service_name.replace("-", "_"), "Service metadata")
    info.info({
        "version": version,
        "environment": environment or os.environ.get("ENVIRONMENT", "development"),
    })
    return info


def metrics_response() -> tuple[bytes, str]:
    """Return Prometheus exposition bytes and the matching content-type."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
