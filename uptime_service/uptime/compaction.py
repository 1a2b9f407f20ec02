"""
Run-length compaction of probe observations.

A website's history is a list of runs. Each new observation either extends
the website's open run (same state, and the merge policy accepts the gap) or
seals it and opens a new one. The same rule drives both the persistent
``RunStore.append`` and the in-memory replay used by the legacy migration, so
the two always agree.

Merge policies
--------------
``LENIENT``
    Extend when ``run.range_end <= observation.time + threshold``. For
    observations delivered in time order this holds whenever the state
    matches, so in practice only a state change opens a new run. This is the
    behaviour the deployed service has always had and is the default.

``STRICT``
    Extend when ``observation.time - run.range_end <= threshold``: a run
    also breaks when probes stop for longer than the threshold (a downtime of
    the prober itself, say).

Which of the two is intended is still open with the product owner; the
policy is a config switch so either can be run without a code change.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from uptime.domain import Observation, Run
from uptime.errors import OutOfOrderObservationError, ThresholdOverflowError

MERGE_THRESHOLD_INTERVALS = 5


class MergePolicy(str, Enum):
    LENIENT = "lenient"
    STRICT = "strict"

    def accepts_gap(self, run_end: datetime, observed_at: datetime, threshold: timedelta) -> bool:
        if self is MergePolicy.STRICT:
            return observed_at - run_end <= threshold
        try:
            return run_end <= observed_at + threshold
        except OverflowError as exc:
            raise ThresholdOverflowError(
                f"{observed_at.isoformat()} + {threshold} is outside the datetime range"
            ) from exc


def merge_threshold(interval_seconds) -> timedelta:
    """Largest gap a run may bridge: five polling intervals.

    Raises ``ThresholdOverflowError`` when the result cannot be represented.
    """
    try:
        return timedelta(seconds=interval_seconds) * MERGE_THRESHOLD_INTERVALS
    except OverflowError as exc:
        raise ThresholdOverflowError(
            f"merge threshold for a {interval_seconds}s interval overflows"
        ) from exc


def check_order(website: str, latest: Optional[Run], observation: Observation) -> None:
    """Reject observations that would break the ordering of *website*'s runs.

    An observation older than the open run's end is rejected. So is one at
    exactly the open run's end with a different state, since the new run
    would share that instant with the sealed one.
    """
    if latest is None:
        return
    if observation.time < latest.range_end:
        raise OutOfOrderObservationError(website, observation.time, latest.range_end)
    if observation.time == latest.range_end and observation.state is not latest.state:
        raise OutOfOrderObservationError(website, observation.time, latest.range_end)


def should_extend(
    website: str,
    latest: Optional[Run],
    observation: Observation,
    threshold: timedelta,
    policy: MergePolicy = MergePolicy.LENIENT,
) -> bool:
    """Decide whether *observation* extends *latest* (True) or opens a new run."""
    check_order(website, latest, observation)
    if latest is None or latest.state is not observation.state:
        return False
    return policy.accepts_gap(latest.range_end, observation.time, threshold)


class Compactor:
    """In-memory run builder.

    ``runs`` grows in insertion order; ``_open`` maps each website to the
    index of its open run in ``runs`` so every ``add`` is O(1).
    """

    def __init__(self, interval_seconds, policy: MergePolicy = MergePolicy.LENIENT):
        self.threshold = merge_threshold(interval_seconds)
        self.policy = policy
        self.runs: list[Run] = []
        self._open: dict[str, int] = {}

    def open_run(self, website: str) -> Optional[Run]:
        idx = self._open.get(website)
        return self.runs[idx] if idx is not None else None

    def add(self, website: str, observation: Observation) -> Run:
        latest = self.open_run(website)
        if should_extend(website, latest, observation, self.threshold, self.policy):
            latest.range_end = observation.time
            return latest

        run = Run.starting_at(website, observation)
        self._open[website] = len(self.runs)
        self.runs.append(run)
        return run


def compact(
    observations: Iterable[tuple[str, Observation]],
    interval_seconds,
    policy: MergePolicy = MergePolicy.LENIENT,
) -> list[Run]:
    """Compact ``(website, observation)`` pairs, given in time order, into runs."""
    compactor = Compactor(interval_seconds, policy)
    for website, observation in observations:
        compactor.add(website, observation)
    return compactor.runs
