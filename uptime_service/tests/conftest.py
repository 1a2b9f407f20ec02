from datetime import datetime, timedelta, timezone

import pytest

import uptime.database as db_module
from uptime.database import init_db
from uptime.domain import Health, Observation

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: float, state: Health = Health.OK) -> Observation:
    """Observation *seconds* after ``T0``."""
    return Observation(time=T0 + timedelta(seconds=seconds), state=state)


@pytest.fixture(autouse=True)
def use_temp_db(tmp_path, monkeypatch):
    """Each test uses a fresh temporary SQLite database."""
    test_db = tmp_path / "test.db"
    monkeypatch.setattr(db_module, "DB_PATH", test_db)
    init_db()
    yield test_db
