"""
Persistent run history.

``RunStore.append`` is the only writer of the ``runs`` table during normal
operation. The latest-run lookup and the resulting UPDATE/INSERT share one
``BEGIN IMMEDIATE`` transaction, so two appends for the same website can
never both read the same open run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from uptime import database
from uptime.compaction import MergePolicy, merge_threshold, should_extend
from uptime.domain import Observation, Run

logger = logging.getLogger("run_store")


@dataclass(frozen=True)
class AppendOutcome:
    run: Run
    extended: bool

    @property
    def outcome(self) -> str:
        return "extended" if self.extended else "inserted"


class RunStore:
    """Compacted check history backed by the ``runs`` table.

    Args:
        policy: How the merge threshold is applied, see ``uptime.compaction``.
    """

    def __init__(self, policy: MergePolicy = MergePolicy.LENIENT):
        self.policy = policy

    def append(self, website: str, observation: Observation, interval_seconds) -> AppendOutcome:
        """Extend *website*'s open run with *observation* or start a new run.

        Exactly one row is written: an UPDATE of the open run's end or an
        INSERT of a one-instant run.

        Raises:
            ThresholdOverflowError: the merge threshold cannot be computed.
            OutOfOrderObservationError: *observation* predates the open run.
            sqlite3.Error: the write failed; nothing was committed.
        """
        threshold = merge_threshold(interval_seconds)

        tracer = trace.get_tracer(__name__)
        with tracer.start_as_current_span(
            "run_store append",
            kind=SpanKind.INTERNAL,
            attributes={
                "uptime.website": website,
                "uptime.state": observation.state.value,
                "uptime.merge_policy": self.policy.value,
            },
        ) as span:
            with database.transaction() as conn:
                latest = database.get_latest_run(conn, website)
                if should_extend(website, latest, observation, threshold, self.policy):
                    database.update_run_end(conn, latest.id, observation.time)
                    latest.range_end = observation.time
                    outcome = AppendOutcome(run=latest, extended=True)
                else:
                    run = Run.starting_at(website, observation)
                    run.id = database.insert_run(conn, run)
                    outcome = AppendOutcome(run=run, extended=False)

            span.set_attribute("uptime.append_outcome", outcome.outcome)

        if outcome.extended or latest is None:
            return outcome
        if latest.state is observation.state:
            logger.info(
                "%s: gap after %s exceeds merge threshold, new run",
                website,
                latest.range_end.isoformat(),
                extra={"website": website},
            )
        else:
            logger.info(
                "%s changed %s -> %s",
                website,
                latest.state.value,
                observation.state.value,
                extra={"website": website},
            )
        return outcome

    def latest_run(self, website: str) -> Optional[Run]:
        with database.get_connection() as conn:
            return database.get_latest_run(conn, website)

    def runs_for(self, website: str) -> list[Run]:
        return database.list_runs(website)

    def list_runs(self) -> list[Run]:
        return database.list_runs()
