"""
One-shot conversion of the legacy ``checks`` log into runs.

Older deployments stored one row per probe. On startup, if that table still
exists, every check is replayed through the same compaction rule
``RunStore.append`` uses, the resulting runs are inserted and the legacy
table is dropped, all in a single transaction. Without the table the job
does nothing, so it is called unconditionally on every start.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from opentelemetry import trace

from uptime import database
from uptime.compaction import Compactor, MergePolicy
from uptime.domain import Observation, Run
from uptime.errors import MigrationError, OutOfOrderObservationError

logger = logging.getLogger("migration")


@dataclass(frozen=True)
class MigrationReport:
    observations: int
    runs: int
    skipped: int


def build_runs(
    observations: Iterable[tuple[str, Observation]],
    interval_seconds,
    policy: MergePolicy = MergePolicy.LENIENT,
) -> tuple[list[Run], int]:
    """Compact time-sorted ``(website, observation)`` pairs.

    Returns the runs and the number of observations the ordering rule
    rejected (two checks of one website at the same instant with different
    results).
    """
    compactor = Compactor(interval_seconds, policy)
    skipped = 0
    for website, observation in observations:
        try:
            compactor.add(website, observation)
        except OutOfOrderObservationError as exc:
            skipped += 1
            logger.warning("Skipping legacy check: %s", exc)
    return compactor.runs, skipped


def migrate_legacy_checks(
    interval_seconds,
    policy: MergePolicy = MergePolicy.LENIENT,
) -> Optional[MigrationReport]:
    """Replace the legacy check log with runs.

    Returns ``None`` when there is no legacy log.

    Raises:
        MigrationError: anything went wrong. The transaction is rolled back,
            so the legacy log and the runs table are exactly as before.
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span("migrate legacy checks") as span:
        started = time.monotonic()
        try:
            with database.transaction() as conn:
                if not database.legacy_log_exists(conn):
                    span.set_attribute("migration.performed", False)
                    return None

                observations = database.list_legacy_observations(conn)
                # stable: checks of one website keep their relative order
                observations.sort(key=lambda pair: pair[1].time)
                runs, skipped = build_runs(observations, interval_seconds, policy)

                database.insert_runs(conn, runs)
                database.drop_legacy_log(conn)
        except MigrationError:
            raise
        except Exception as exc:
            raise MigrationError(
                "migrating legacy checks to runs failed; nothing was committed"
            ) from exc

        report = MigrationReport(observations=len(observations), runs=len(runs), skipped=skipped)
        span.set_attribute("migration.performed", True)
        span.set_attribute("migration.observations", report.observations)
        span.set_attribute("migration.runs", report.runs)

        try:
            database.reclaim_space()
        except sqlite3.Error as exc:
            raise MigrationError(
                "legacy checks were migrated but reclaiming space failed"
            ) from exc

        logger.info(
            "Migrated %d legacy checks into %d runs in %.2fs (%d skipped)",
            report.observations,
            report.runs,
            time.monotonic() - started,
            report.skipped,
        )
        return report
