"""
Service configuration.

The config is a JSON file::

    {
        "interval_seconds": 60,
        "websites": [
            {"name": "example", "url": "https://example.com"}
        ],
        "db_url": "uptime.db"
    }

Its path comes from ``UPTIME_CONFIG_PATH`` (default ``uptime.json``);
``UPTIME_DB_URL`` overrides ``db_url``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl, PositiveFloat, PositiveInt, ValidationError, field_validator

from uptime.compaction import MergePolicy
from uptime.database import DEFAULT_DB_URL
from uptime.downsample import DEFAULT_BUCKET_COUNT
from uptime.errors import ConfigError

logger = logging.getLogger("config")

DEFAULT_CONFIG_PATH = "uptime.json"


class WebsiteConfig(BaseModel):
    name: str = Field(min_length=1)
    url: HttpUrl


class Config(BaseModel):
    interval_seconds: PositiveInt
    websites: list[WebsiteConfig] = Field(default_factory=list)
    db_url: str = DEFAULT_DB_URL
    merge_policy: MergePolicy = MergePolicy.LENIENT
    # None disables the per-probe timeout
    probe_timeout_seconds: Optional[PositiveFloat] = 30.0
    bucket_count: PositiveInt = DEFAULT_BUCKET_COUNT

    @field_validator("websites")
    @classmethod
    def _unique_names(cls, websites: list[WebsiteConfig]) -> list[WebsiteConfig]:
        seen = set()
        for website in websites:
            if website.name in seen:
                raise ValueError(f"duplicate website name {website.name!r}")
            seen.add(website.name)
        return websites

    @property
    def website_names(self) -> list[str]:
        return [w.name for w in self.websites]


def read_config(config_path: str | Path) -> Config:
    path = Path(config_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"opening config at '{path}': {exc}") from exc

    try:
        return Config.model_validate(json.loads(raw))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config at '{path}' is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(f"invalid config at '{path}':\n{exc}") from exc


def load_config() -> Config:
    """Read the config named by the environment and apply env overrides."""
    config_path = os.environ.get("UPTIME_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    logger.info("Reading config from %s", config_path)
    config = read_config(config_path)

    db_url = os.environ.get("UPTIME_DB_URL")
    if db_url:
        config = config.model_copy(update={"db_url": db_url})
    return config
