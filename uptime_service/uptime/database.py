import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from uptime.domain import Health, Observation, Run, utc

DEFAULT_DB_URL = "uptime.db"

LEGACY_TABLE = "checks"

SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    website TEXT NOT NULL,
    result TEXT NOT NULL CHECK (result IN ('ok', 'not_ok')),
    range_start TEXT NOT NULL,
    range_end TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_runs_website_end ON runs(website, range_end);
"""


def resolve_db_path(db_url: str) -> Path:
    """Accept a plain path or an ``sqlite://path`` / ``sqlite:path`` URL."""
    path = db_url.strip()
    for prefix in ("sqlite://", "sqlite:"):
        if path.startswith(prefix):
            path = path[len(prefix):]
            break
    path = path.split("?", 1)[0]
    if not path:
        raise ValueError(f"no database path in {db_url!r}")
    return Path(path)


DB_PATH = resolve_db_path(os.environ.get("UPTIME_DB_URL", DEFAULT_DB_URL))


def configure(db_url: str) -> Path:
    global DB_PATH
    DB_PATH = resolve_db_path(db_url)
    return DB_PATH


def _get_db_path() -> Path:
    return DB_PATH


def _span(name: str, operation: str, **attributes):
    tracer = trace.get_tracer(__name__)
    return tracer.start_as_current_span(
        name,
        kind=SpanKind.INTERNAL,
        attributes={"db.system": "sqlite", "db.operation": operation, **attributes},
    )


# ── time / state encoding ─────────────────────────────────────────

def encode_time(dt: datetime) -> str:
    # fixed-width text so ORDER BY on the column is chronological
    return utc(dt).isoformat(timespec="microseconds")


def decode_time(raw) -> datetime:
    if isinstance(raw, datetime):
        return utc(raw)
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    return utc(datetime.fromisoformat(str(raw).strip()))


def parse_health(raw) -> Health:
    """Decode a stored state tag; tolerates ``Ok`` / ``NotOk`` spellings."""
    tag = str(raw).strip().lower().replace("_", "")
    if tag == "ok":
        return Health.OK
    if tag == "notok":
        return Health.NOT_OK
    raise ValueError(f"unknown health state {raw!r}")


def _row_to_run(row: sqlite3.Row) -> Run:
    return Run(
        id=row["id"],
        website=row["website"],
        state=Health(row["result"]),
        range_start=decode_time(row["range_start"]),
        range_end=decode_time(row["range_end"]),
    )


# ── connections ──────────────────────────────────────────────────

def init_db() -> None:
    """Create the runs schema. Safe to call on every start."""
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_connection() as conn:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.executescript(SCHEMA)


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    """Autocommit connection; use ``transaction()`` for multi-statement writes."""
    conn = sqlite3.connect(
        str(_get_db_path()),
        timeout=30,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA busy_timeout = 5000")
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Write transaction holding the database write lock from its first statement.

    ``BEGIN IMMEDIATE`` makes read-then-write sequences atomic against other
    writers; everything is rolled back if the block raises.
    """
    with get_connection() as conn:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


def check_connection() -> bool:
    try:
        with get_connection() as conn:
            conn.execute("SELECT 1")
        return True
    except sqlite3.Error:
        return False


# ── runs ─────────────────────────────────────────────────────────

def get_latest_run(conn: sqlite3.Connection, website: str) -> Optional[Run]:
    row = conn.execute(
        """
        SELECT id, website, result, range_start, range_end
        FROM runs
        WHERE website = ?
        ORDER BY range_end DESC, id DESC
        LIMIT 1
        """,
        (website,),
    ).fetchone()
    return _row_to_run(row) if row else None


def insert_run(conn: sqlite3.Connection, run: Run) -> int:
    cur = conn.execute(
        "INSERT INTO runs (website, result, range_start, range_end) VALUES (?, ?, ?, ?)",
        (run.website, run.state.value, encode_time(run.range_start), encode_time(run.range_end)),
    )
    return cur.lastrowid


def update_run_end(conn: sqlite3.Connection, run_id: int, range_end: datetime) -> None:
    conn.execute(
        "UPDATE runs SET range_end = ? WHERE id = ?",
        (encode_time(range_end), run_id),
    )


def insert_runs(conn: sqlite3.Connection, runs: Iterable[Run]) -> int:
    rows = [
        (r.website, r.state.value, encode_time(r.range_start), encode_time(r.range_end))
        for r in runs
    ]
    with _span("db insert_runs", "INSERT", **{"db.records_count": len(rows)}):
        conn.executemany(
            "INSERT INTO runs (website, result, range_start, range_end) VALUES (?, ?, ?, ?)",
            rows,
        )
    return len(rows)


def list_runs(website: Optional[str] = None) -> list[Run]:
    """All runs (optionally for one website), ordered by website then start."""
    query = "SELECT id, website, result, range_start, range_end FROM runs"
    params: tuple = ()
    if website is not None:
        query += " WHERE website = ?"
        params = (website,)
    query += " ORDER BY website, range_start, id"

    with _span("db query list_runs", "SELECT") as span:
        with get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        span.set_attribute("db.result_count", len(rows))
    return [_row_to_run(row) for row in rows]


def count_runs() -> int:
    with get_connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS cnt FROM runs").fetchone()
    return row["cnt"]


# ── legacy check log ─────────────────────────────────────────────

def legacy_log_exists(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (LEGACY_TABLE,),
    ).fetchone()
    return row is not None


def list_legacy_observations(conn: sqlite3.Connection) -> list[tuple[str, Observation]]:
    """Every legacy check as ``(website, observation)``, in insertion order."""
    with _span("db query list_legacy_observations", "SELECT") as span:
        rows = conn.execute(
            f"SELECT id, request_time, website, result FROM {LEGACY_TABLE} ORDER BY id"
        ).fetchall()
        span.set_attribute("db.result_count", len(rows))
    return [
        (row["website"], Observation(time=decode_time(row["request_time"]), state=parse_health(row["result"])))
        for row in rows
    ]


def drop_legacy_log(conn: sqlite3.Connection) -> None:
    conn.execute(f"DROP TABLE {LEGACY_TABLE}")


def reclaim_space() -> None:
    # VACUUM refuses to run inside a transaction
    with _span("db vacuum", "VACUUM"):
        with get_connection() as conn:
            conn.execute("VACUUM")
