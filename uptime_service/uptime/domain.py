"""
Value types shared by the prober, the run store and the dashboard.

``Health`` values double as the persisted tag, so renaming a member is a
storage-format change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Health(str, Enum):
    OK = "ok"
    NOT_OK = "not_ok"


class BucketClass(str, Enum):
    GREEN = "green"
    ORANGE = "orange"
    RED = "red"
    UNKNOWN = "unknown"

    @property
    def css_class(self) -> str:
        return f"check-result-{self.value}"


def utc(dt: datetime) -> datetime:
    """Normalise *dt* to an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class Observation:
    """One health reading for one website at one instant."""

    time: datetime
    state: Health

    def __post_init__(self):
        object.__setattr__(self, "time", utc(self.time))


@dataclass
class Run:
    """A compacted stretch of same-state observations for one website.

    ``id`` is ``None`` until the run has been written to storage.
    """

    website: str
    state: Health
    range_start: datetime
    range_end: datetime
    id: Optional[int] = None

    @classmethod
    def starting_at(cls, website: str, observation: Observation) -> "Run":
        return cls(
            website=website,
            state=observation.state,
            range_start=observation.time,
            range_end=observation.time,
        )

    @property
    def is_ok(self) -> bool:
        return self.state is Health.OK


@dataclass(frozen=True)
class Bucket:
    """One cell of the status bar.

    ``span`` is ``(start, end)`` or ``None`` when the website has no history.
    """

    classification: BucketClass
    span: Optional[tuple[datetime, datetime]] = None


@dataclass
class WebsiteStatus:
    website: str
    last_ok: Optional[datetime]
    ok_ratio: str
    total_runs: int
    ok_runs: int
    buckets: list[Bucket] = field(default_factory=list)
    # bounds of the whole bar: first run start, last run end
    first_time: Optional[datetime] = None
    last_time: Optional[datetime] = None
