"""
Storage bootstrap shared by the server and the page generator.

Runs once per process, before anything reads or writes runs: point the
database module at the configured file, create the schema, then migrate a
legacy check log if one is still present.
"""

import asyncio
import logging
from typing import Optional

from uptime import database
from uptime.config import Config
from uptime.migration import MigrationReport, migrate_legacy_checks
from uptime.telemetry import MIGRATED_RUNS_TOTAL

logger = logging.getLogger("bootstrap")


def prepare_storage(config: Config) -> Optional[MigrationReport]:
    """Raises ``MigrationError`` if the legacy log could not be migrated."""
    db_path = database.configure(config.db_url)
    logger.info("Opening database at %s", db_path)
    database.init_db()

    report = migrate_legacy_checks(config.interval_seconds, config.merge_policy)
    if report is not None:
        MIGRATED_RUNS_TOTAL.inc(report.runs)
    return report


async def prepare_storage_async(config: Config) -> Optional[MigrationReport]:
    return await asyncio.to_thread(prepare_storage, config)
