"""
Background probe loop.

Every ``interval_seconds`` the loop probes all configured websites and
records one observation per website through ``RunStore.append``:
  1. Probe each website in turn (``uptime.prober``).
  2. Append the observations in a worker thread so sqlite never blocks the
     event loop the dashboard is served from.
  3. Count outcomes and failures in Prometheus.

A failure to record one website's observation is logged and counted; the
other websites of the tick are still recorded. Ticks never overlap, so the
appends of one website stay in time order.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from typing import NoReturn, Optional

import httpx
from opentelemetry import trace

from uptime.config import Config
from uptime.domain import Observation
from uptime.errors import OutOfOrderObservationError, ThresholdOverflowError
from uptime.prober import build_client, probe_all
from uptime.run_store import AppendOutcome, RunStore
from uptime.telemetry import APPEND_FAILURES_TOTAL, RUN_APPENDS_TOTAL, TICK_DURATION

logger = logging.getLogger("scheduler")


@dataclass
class TickReport:
    recorded: dict[str, AppendOutcome] = field(default_factory=dict)
    failed: dict[str, Exception] = field(default_factory=dict)


def _fail(report: TickReport, website: str, reason: str, exc: Exception) -> None:
    report.failed[website] = exc
    APPEND_FAILURES_TOTAL.labels(reason=reason).inc()


def record_observations(
    store: RunStore,
    observations: dict[str, Observation],
    interval_seconds,
) -> TickReport:
    """Append each observation; a failing website does not stop the rest.

    An overflowing merge threshold skips that website's append for this
    tick. Out-of-order observations are dropped.
    """
    report = TickReport()
    for website, observation in observations.items():
        try:
            outcome = store.append(website, observation, interval_seconds)
        except ThresholdOverflowError as exc:
            logger.error("%s: skipping append this tick: %s", website, exc, extra={"website": website})
            _fail(report, website, "threshold_overflow", exc)
        except OutOfOrderObservationError as exc:
            logger.warning("%s: dropping observation: %s", website, exc, extra={"website": website})
            _fail(report, website, "out_of_order", exc)
        except sqlite3.Error as exc:
            logger.exception("%s: storing observation failed", website, extra={"website": website})
            _fail(report, website, "storage", exc)
        except Exception as exc:
            # e.g. a stored run that no longer decodes
            logger.exception("%s: appending observation failed", website, extra={"website": website})
            _fail(report, website, "storage", exc)
        else:
            report.recorded[website] = outcome
            RUN_APPENDS_TOTAL.labels(outcome=outcome.outcome).inc()
    return report


async def run_tick(client: httpx.AsyncClient, config: Config, store: RunStore) -> TickReport:
    """Probe every website once and record the results."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        "check tick",
        attributes={"uptime.websites": len(config.websites)},
    ) as span:
        started = time.monotonic()
        observations = await probe_all(client, config.websites)
        report = await asyncio.to_thread(
            record_observations, store, observations, config.interval_seconds
        )
        elapsed = time.monotonic() - started
        TICK_DURATION.observe(elapsed)
        span.set_attribute("uptime.failed_appends", len(report.failed))

    if report.failed:
        logger.warning(
            "Finished tick in %.2fs with %d failed website(s): %s",
            elapsed,
            len(report.failed),
            ", ".join(sorted(report.failed)),
        )
    else:
        logger.info("Finished tick in %.2fs", elapsed)
    return report


async def check_loop(
    config: Config,
    store: Optional[RunStore] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> NoReturn:
    """Run ``run_tick`` every ``config.interval_seconds`` seconds, forever.

    The first tick runs immediately. The only way out is an exception, in
    practice ``CancelledError`` from the FastAPI lifespan on shutdown; a tick
    that raises anything else is logged and the loop carries on.

    A *client* passed in stays open when the loop exits; one the loop builds
    itself is closed.
    """
    store = store or RunStore(config.merge_policy)

    logger.info(
        "Probe loop started (interval=%ds, websites=%d, merge_policy=%s)",
        config.interval_seconds,
        len(config.websites),
        config.merge_policy.value,
    )

    if client is not None:
        await _loop(client, config, store)
    async with build_client(config.probe_timeout_seconds) as http:
        await _loop(http, config, store)


async def _loop(http: httpx.AsyncClient, config: Config, store: RunStore) -> NoReturn:
    interval = config.interval_seconds
    while True:
        started = time.monotonic()
        try:
            logger.info("Running tick")
            await run_tick(http, config, store)
        except asyncio.CancelledError:
            logger.info("Probe loop cancelled, shutting down")
            raise
        except Exception:
            logger.exception("Tick failed")

        await asyncio.sleep(max(0.0, interval - (time.monotonic() - started)))
