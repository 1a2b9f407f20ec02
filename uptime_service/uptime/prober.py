"""
HTTP probes.

A website is healthy when a GET to its URL answers with a 2xx status after
redirects. Any other status, and any transport error including a timeout,
is recorded as ``NOT_OK``; a failed probe is data, not an error.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

import httpx

from uptime import __version__
from uptime.config import WebsiteConfig
from uptime.domain import Health, Observation
from uptime.telemetry import PROBE_DURATION, PROBES_TOTAL

logger = logging.getLogger("prober")

USER_AGENT = f"uptime/{__version__}"


def build_client(timeout_seconds: Optional[float] = 30.0, **kwargs) -> httpx.AsyncClient:
    """AsyncClient used for probing; ``timeout_seconds=None`` waits indefinitely."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
        **kwargs,
    )


async def probe(client: httpx.AsyncClient, website: WebsiteConfig) -> Observation:
    observed_at = datetime.now(timezone.utc)
    started = time.monotonic()
    try:
        response = await client.get(str(website.url))
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        state = Health.NOT_OK
        logger.warning(
            "%s: probe failed: %s",
            website.name,
            exc.__class__.__name__,
            extra={"website": website.name, "error": str(exc)},
        )
    else:
        state = Health.OK if response.is_success else Health.NOT_OK
        if state is Health.NOT_OK:
            logger.warning(
                "%s: probe returned HTTP %d",
                website.name,
                response.status_code,
                extra={"website": website.name, "status_code": response.status_code},
            )

    PROBE_DURATION.labels(website=website.name).observe(time.monotonic() - started)
    PROBES_TOTAL.labels(website=website.name, state=state.value).inc()
    return Observation(time=observed_at, state=state)


async def probe_all(client: httpx.AsyncClient, websites: Iterable[WebsiteConfig]) -> dict[str, Observation]:
    """Probe each website in turn, one request at a time.

    Returns one observation per website, keyed by name, in config order.
    """
    results: dict[str, Observation] = {}
    for website in websites:
        results[website.name] = await probe(client, website)
    return results
