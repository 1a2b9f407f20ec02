"""Tests for the legacy check-log migration."""

import sqlite3
from unittest.mock import patch

import pytest

from uptime import database
from uptime.compaction import MergePolicy
from uptime.domain import Health
from uptime.errors import MigrationError
from uptime.migration import build_runs, migrate_legacy_checks
from uptime.run_store import RunStore

from conftest import at

OK, NOT_OK = Health.OK, Health.NOT_OK


def _create_legacy_log(rows):
    """rows: (website, seconds after T0, result tag)"""
    with database.get_connection() as conn:
        conn.execute(
            """
            CREATE TABLE checks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                request_time TEXT NOT NULL,
                website TEXT NOT NULL,
                result TEXT NOT NULL
            )
            """
        )
        conn.executemany(
            "INSERT INTO checks (request_time, website, result) VALUES (?, ?, ?)",
            [(database.encode_time(at(seconds).time), website, result) for website, seconds, result in rows],
        )


def _legacy_exists() -> bool:
    with database.get_connection() as conn:
        return database.legacy_log_exists(conn)


def _shape(runs):
    return [(r.website, r.state, r.range_start, r.range_end) for r in runs]


class TestNoLegacyLog:
    def test_returns_none(self):
        assert migrate_legacy_checks(60) is None

    def test_leaves_runs_alone(self):
        RunStore().append("a", at(0), 60)
        migrate_legacy_checks(60)
        assert database.count_runs() == 1


class TestMigration:
    ROWS = [
        ("example", 0, "Ok"),
        ("other", 0, "NotOk"),
        ("example", 60, "Ok"),
        ("other", 60, "NotOk"),
        ("example", 120, "Ok"),
        ("other", 120, "Ok"),
        ("example", 180, "NotOk"),
        ("example", 240, "Ok"),
    ]

    def test_report_counts(self):
        _create_legacy_log(self.ROWS)
        report = migrate_legacy_checks(60)
        assert report.observations == 8
        assert report.runs == 5
        assert report.skipped == 0

    def test_legacy_log_is_dropped(self):
        _create_legacy_log(self.ROWS)
        migrate_legacy_checks(60)
        assert not _legacy_exists()
        assert migrate_legacy_checks(60) is None

    def test_matches_replaying_through_append(self, tmp_path, monkeypatch):
        _create_legacy_log(self.ROWS)
        migrate_legacy_checks(60)
        migrated = _shape(database.list_runs())

        monkeypatch.setattr(database, "DB_PATH", tmp_path / "replay.db")
        database.init_db()
        store = RunStore()
        for website, seconds, result in self.ROWS:
            store.append(website, at(seconds, database.parse_health(result)), 60)

        assert _shape(database.list_runs()) == migrated

    def test_unsorted_log_is_sorted_by_time(self):
        _create_legacy_log([("a", 120, "Ok"), ("a", 0, "Ok"), ("a", 60, "Ok")])
        migrate_legacy_checks(60)
        runs = database.list_runs("a")
        assert _shape(runs) == [("a", OK, at(0).time, at(120).time)]

    def test_conflicting_checks_are_skipped(self):
        _create_legacy_log([("a", 0, "Ok"), ("a", 0, "NotOk"), ("a", 60, "Ok")])
        report = migrate_legacy_checks(60)
        assert report.skipped == 1
        assert _shape(database.list_runs("a")) == [("a", OK, at(0).time, at(60).time)]

    def test_merge_policy_is_applied(self):
        _create_legacy_log([("a", 0, "Ok"), ("a", 3600, "Ok")])
        report = migrate_legacy_checks(60, MergePolicy.STRICT)
        assert report.runs == 2


class TestMigrationFailure:
    def test_insert_failure_rolls_back(self):
        _create_legacy_log(TestMigration.ROWS)
        with patch.object(database, "drop_legacy_log", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(MigrationError) as excinfo:
                migrate_legacy_checks(60)
        assert isinstance(excinfo.value.__cause__, sqlite3.OperationalError)
        assert _legacy_exists()
        assert database.count_runs() == 0

    def test_unreadable_check_rolls_back(self):
        _create_legacy_log([("a", 0, "Ok"), ("a", 60, "Maybe")])
        with pytest.raises(MigrationError):
            migrate_legacy_checks(60)
        assert _legacy_exists()
        assert database.count_runs() == 0

    def test_vacuum_failure_is_reported(self):
        _create_legacy_log(TestMigration.ROWS)
        with patch.object(database, "reclaim_space", side_effect=sqlite3.OperationalError("full")):
            with pytest.raises(MigrationError):
                migrate_legacy_checks(60)
        # committed before VACUUM
        assert not _legacy_exists()


class TestBuildRuns:
    def test_counts_skipped(self):
        pairs = [("a", at(60)), ("a", at(0))]
        runs, skipped = build_runs(pairs, 60)
        assert len(runs) == 1
        assert skipped == 1
