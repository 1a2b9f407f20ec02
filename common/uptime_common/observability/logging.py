"""
Structured JSON logging with OpenTelemetry trace context injection.

``setup_logging()`` configures the root logger once per process: every record
is rendered as a single JSON line and carries the active trace/span IDs, so a
slow tick or a failed append can be matched to its span.

Usage::

    from uptime_common.observability.logging import setup_logging, get_logger

    setup_logging()                       # call once at process startup
    logger = get_logger("scheduler")      # get a named logger
    logger.info("tick finished")          # {"timestamp": ..., "level": "INFO", ...}

Per-website context goes into ``extra`` and ends up as top-level JSON keys::

    logger.warning("append skipped", extra={"website": "example"})
"""

import logging
import os
import sys

from opentelemetry.instrumentation.logging import LoggingInstrumentor
from pythonjsonlogger.json import JsonFormatter


_FORMAT_STRING = "%(timestamp)s %(level)s %(name)s %(message)s"
_setup_done = False


class JsonTraceFormatter(JsonFormatter):
    """JSON formatter that adds standard fields to every log record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()

        trace_id = getattr(record, "otelTraceID", None)
        if trace_id and trace_id != "0":
            log_record["trace_id"] = trace_id
            log_record["span_id"] = getattr(record, "otelSpanID", "")


def _level_from_env(default: int) -> int:
    raw = os.environ.get("LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger with structured JSON output and trace context.

    Safe to call multiple times; subsequent calls are no-ops. ``LOG_LEVEL``
    in the environment overrides *level*.

    Args:
        level: The root log level (default ``logging.INFO``).
    """
    global _setup_done
    if _setup_done:
        return
    _setup_done = True

    # Instrument stdlib logging so OTel injects trace/span IDs
    LoggingInstrumentor().instrument(set_logging_format=False)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonTraceFormatter(_FORMAT_STRING))

    root = logging.getLogger()
    root.setLevel(_level_from_env(level))
    root.addHandler(handler)

    # httpx logs every request at INFO; one line per probe is noise
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (thin wrapper for discoverability)."""
    return logging.getLogger(name)
