"""
Per-website summary for the dashboard.

Counts are over runs, not individual probes: a website that was up for a
week and down for five minutes reports 50%. The run table does not keep
per-probe counts, and that is the price of storing a week of history in two
rows.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from uptime.domain import Run, WebsiteStatus
from uptime.downsample import DEFAULT_BUCKET_COUNT, downsample

NO_RATIO = "N/A"


def format_ratio(ok_runs: int, total_runs: int) -> str:
    """``ok_runs / total_runs`` as a percentage with two decimals, e.g. ``"50.00%"``."""
    if total_runs == 0:
        return NO_RATIO
    return f"{ok_runs / total_runs * 100:.2f}%"


def summarize(website: str, runs: Sequence[Run], bucket_count: int = DEFAULT_BUCKET_COUNT) -> WebsiteStatus:
    ordered = sorted(runs, key=lambda run: (run.range_start, run.range_end))
    ok_ends = [run.range_end for run in ordered if run.is_ok]

    return WebsiteStatus(
        website=website,
        last_ok=max(ok_ends) if ok_ends else None,
        ok_ratio=format_ratio(len(ok_ends), len(ordered)),
        total_runs=len(ordered),
        ok_runs=len(ok_ends),
        buckets=downsample(ordered, bucket_count),
        first_time=ordered[0].range_start if ordered else None,
        last_time=ordered[-1].range_end if ordered else None,
    )


def compute_status(
    runs: Iterable[Run],
    websites: Optional[Iterable[str]] = None,
    bucket_count: int = DEFAULT_BUCKET_COUNT,
) -> list[WebsiteStatus]:
    """Summaries for every website in *runs* plus every name in *websites*, by name."""
    by_website: dict[str, list[Run]] = defaultdict(list)
    for name in websites or ():
        by_website.setdefault(name, [])
    for run in runs:
        by_website[run.website].append(run)

    return [
        summarize(name, by_website[name], bucket_count)
        for name in sorted(by_website)
    ]
