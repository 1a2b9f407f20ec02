"""
Downsample a website's run history into a fixed number of status-bar cells.

The span from the first run's start to the last run's end is cut into
``bucket_count`` equal slices. A run counts towards every slice its closed
interval touches, so a run ending exactly on a boundary shows up on both
sides. A slice is green when every run touching it was ok, red when none
was, orange for a mix and unknown when no run touches it.

Offsets are computed in float seconds from the first start. To keep float
rounding from pushing the very last instant out of the bar, the final slice
is given twice the nominal width.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from datetime import timedelta
from itertools import accumulate
from typing import Iterable, Sequence

from uptime.domain import Bucket, BucketClass, Health, Run

DEFAULT_BUCKET_COUNT = 100


def classify(states: Iterable[Health]) -> BucketClass:
    total = ok = 0
    for state in states:
        total += 1
        if state is Health.OK:
            ok += 1
    return _classify_counts(ok, total)


def _classify_counts(ok: int, total: int) -> BucketClass:
    if total == 0:
        return BucketClass.UNKNOWN
    if ok == total:
        return BucketClass.GREEN
    if ok == 0:
        return BucketClass.RED
    return BucketClass.ORANGE


def _check_ordered(runs: Sequence[Run]) -> None:
    for prev, run in zip(runs, runs[1:]):
        if run.range_start < prev.range_start or run.range_end < prev.range_end:
            raise ValueError(f"runs for {run.website!r} are not ordered by time")
    for run in runs:
        if run.range_end < run.range_start:
            raise ValueError(f"run {run.id} for {run.website!r} ends before it starts")


def downsample(runs: Sequence[Run], bucket_count: int = DEFAULT_BUCKET_COUNT) -> list[Bucket]:
    """Map ordered, non-overlapping *runs* of one website onto *bucket_count* buckets.

    With no runs every bucket is ``UNKNOWN`` and has no span. When all runs
    sit on a single instant there is nothing to divide, and every bucket
    carries the classification of all runs together.
    """
    if bucket_count < 1:
        raise ValueError(f"bucket_count must be positive, got {bucket_count}")
    if not runs:
        return [Bucket(BucketClass.UNKNOWN) for _ in range(bucket_count)]

    _check_ordered(runs)
    first = runs[0].range_start
    last = runs[-1].range_end
    total = (last - first).total_seconds()

    if total == 0:
        classification = classify(run.state for run in runs)
        return [Bucket(classification, (first, last)) for _ in range(bucket_count)]

    # ordered and non-overlapping, so both starts and ends are sorted
    starts = [(run.range_start - first).total_seconds() for run in runs]
    ends = [(run.range_end - first).total_seconds() for run in runs]
    ok_prefix = [0, *accumulate(1 if run.is_ok else 0 for run in runs)]

    width = total / bucket_count
    buckets = []
    for i in range(bucket_count):
        lo = i * width
        hi = (i + (2 if i == bucket_count - 1 else 1)) * width

        # runs with end >= lo and start <= hi, i.e. not disjoint with [lo, hi]
        first_idx = bisect_left(ends, lo)
        stop_idx = bisect_right(starts, hi)
        total_in = max(0, stop_idx - first_idx)
        ok_in = ok_prefix[stop_idx] - ok_prefix[first_idx] if total_in else 0

        buckets.append(Bucket(
            _classify_counts(ok_in, total_in),
            (first + timedelta(seconds=lo), first + timedelta(seconds=hi)),
        ))
    return buckets
