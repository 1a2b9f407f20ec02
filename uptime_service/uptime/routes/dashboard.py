"""
Dashboard route.

  GET /   HTML status page: one bar of downsampled run history per website.

A failure while building or rendering the page fails that request with a
500; the probe loop and later requests are unaffected.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from opentelemetry import trace

from uptime import database
from uptime.aggregator import compute_status
from uptime.config import Config
from uptime.domain import WebsiteStatus
from uptime.downsample import DEFAULT_BUCKET_COUNT
from uptime.render import render_page
from uptime.telemetry import WEBSITE_OK_RATIO

logger = logging.getLogger("dashboard")

router = APIRouter(tags=["Dashboard"])


def app_config(request: Request) -> Optional[Config]:
    return getattr(request.app.state, "config", None)


def current_status(config: Optional[Config]) -> list[WebsiteStatus]:
    """Summaries for every configured or stored website, read fresh from the database."""
    websites = config.website_names if config else None
    bucket_count = config.bucket_count if config else DEFAULT_BUCKET_COUNT
    statuses = compute_status(database.list_runs(), websites, bucket_count)

    for status in statuses:
        if status.total_runs:
            WEBSITE_OK_RATIO.labels(website=status.website).set(status.ok_runs / status.total_runs)
    return statuses


@router.get("/", response_class=HTMLResponse)
def dashboard(request: Request):
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span("render dashboard") as span:
        try:
            statuses = current_status(app_config(request))
            body = render_page(statuses)
        except Exception as exc:
            logger.exception("Rendering the dashboard failed")
            span.record_exception(exc)
            return PlainTextResponse("Internal Server Error", status_code=500)
        span.set_attribute("uptime.websites", len(statuses))
    return HTMLResponse(body)
