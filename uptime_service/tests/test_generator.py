"""Tests for the static page generator CLI."""

import json

import pytest

from uptime import database
from uptime.generator import main
from uptime.run_store import RunStore

from conftest import at


@pytest.fixture
def config_path(tmp_path, use_temp_db, monkeypatch):
    monkeypatch.delenv("UPTIME_DB_URL", raising=False)
    path = tmp_path / "uptime.json"
    path.write_text(json.dumps({
        "interval_seconds": 60,
        "websites": [{"name": "example", "url": "https://example.com"}],
        "db_url": str(use_temp_db),
    }))
    return path


def test_writes_page_to_stdout(config_path, capsys):
    RunStore().append("example", at(0), 60)
    assert main(["--config", str(config_path)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("<!DOCTYPE html>")
    assert "example" in out
    assert "100.00%" in out


def test_writes_page_to_file(config_path, tmp_path):
    output = tmp_path / "index.html"
    assert main(["--config", str(config_path), "--output", str(output)]) == 0
    assert "example" in output.read_text()


def test_migrates_legacy_log_first(config_path, capsys):
    with database.get_connection() as conn:
        conn.execute("CREATE TABLE checks (id INTEGER PRIMARY KEY, request_time TEXT, website TEXT, result TEXT)")
        conn.execute(
            "INSERT INTO checks (request_time, website, result) VALUES (?, 'example', 'NotOk')",
            (database.encode_time(at(0).time),),
        )
    assert main(["--config", str(config_path)]) == 0
    assert "0.00%" in capsys.readouterr().out
    assert database.count_runs() == 1


def test_missing_config_fails(tmp_path):
    assert main(["--config", str(tmp_path / "absent.json")]) == 1


def test_broken_pipe_exits_cleanly(config_path, monkeypatch):
    class ClosedPipe:
        def write(self, data):
            raise BrokenPipeError

        def flush(self):
            raise BrokenPipeError

        def fileno(self):
            return self._fd

    closed = ClosedPipe()
    monkeypatch.setattr("sys.stdout", closed)
    monkeypatch.setattr("os.dup2", lambda fd, fd2: None)
    closed._fd = 1
    assert main(["--config", str(config_path)]) == 0
