import json

import pytest

from uptime.compaction import MergePolicy
from uptime.config import load_config, read_config
from uptime.errors import ConfigError


def _write(tmp_path, data, name="uptime.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


VALID = {
    "interval_seconds": 60,
    "websites": [
        {"name": "example", "url": "https://example.com"},
        {"name": "other", "url": "http://other.test/health"},
    ],
    "db_url": "sqlite://data/uptime.db",
}


class TestReadConfig:
    def test_valid(self, tmp_path):
        config = read_config(_write(tmp_path, VALID))
        assert config.interval_seconds == 60
        assert config.website_names == ["example", "other"]
        assert config.db_url == "sqlite://data/uptime.db"

    def test_defaults(self, tmp_path):
        config = read_config(_write(tmp_path, {"interval_seconds": 30}))
        assert config.websites == []
        assert config.db_url == "uptime.db"
        assert config.merge_policy is MergePolicy.LENIENT
        assert config.probe_timeout_seconds == 30.0
        assert config.bucket_count == 100

    def test_strict_policy(self, tmp_path):
        config = read_config(_write(tmp_path, {**VALID, "merge_policy": "strict"}))
        assert config.merge_policy is MergePolicy.STRICT

    def test_timeout_can_be_disabled(self, tmp_path):
        config = read_config(_write(tmp_path, {**VALID, "probe_timeout_seconds": None}))
        assert config.probe_timeout_seconds is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="opening config"):
            read_config(tmp_path / "absent.json")

    def test_not_json(self, tmp_path):
        with pytest.raises(ConfigError, match="not valid JSON"):
            read_config(_write(tmp_path, "{interval_seconds: 60"))

    @pytest.mark.parametrize(
        "override",
        [
            {"interval_seconds": 0},
            {"interval_seconds": "soon"},
            {"websites": [{"name": "", "url": "https://example.com"}]},
            {"websites": [{"name": "x", "url": "not a url"}]},
            {"merge_policy": "sometimes"},
            {"bucket_count": 0},
        ],
    )
    def test_invalid_values(self, tmp_path, override):
        with pytest.raises(ConfigError, match="invalid config"):
            read_config(_write(tmp_path, {**VALID, **override}))

    def test_duplicate_names(self, tmp_path):
        websites = [{"name": "a", "url": "https://a.test"}, {"name": "a", "url": "https://b.test"}]
        with pytest.raises(ConfigError, match="duplicate website name"):
            read_config(_write(tmp_path, {**VALID, "websites": websites}))


class TestLoadConfig:
    def test_reads_path_from_env(self, tmp_path, monkeypatch):
        path = _write(tmp_path, VALID, name="custom.json")
        monkeypatch.setenv("UPTIME_CONFIG_PATH", str(path))
        monkeypatch.delenv("UPTIME_DB_URL", raising=False)
        assert load_config().website_names == ["example", "other"]

    def test_db_url_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("UPTIME_CONFIG_PATH", str(_write(tmp_path, VALID)))
        monkeypatch.setenv("UPTIME_DB_URL", "/var/lib/uptime/runs.db")
        assert load_config().db_url == "/var/lib/uptime/runs.db"
