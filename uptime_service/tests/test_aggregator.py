from datetime import timedelta

from uptime.aggregator import NO_RATIO, compute_status, format_ratio, summarize
from uptime.domain import BucketClass, Health, Run

from conftest import T0

OK, NOT_OK = Health.OK, Health.NOT_OK


def run(website, start, end, state=OK):
    return Run(
        website=website,
        state=state,
        range_start=T0 + timedelta(seconds=start),
        range_end=T0 + timedelta(seconds=end),
    )


class TestFormatRatio:
    def test_half(self):
        assert format_ratio(1, 2) == "50.00%"

    def test_two_decimals(self):
        assert format_ratio(1, 3) == "33.33%"
        assert format_ratio(2, 3) == "66.67%"

    def test_whole(self):
        assert format_ratio(4, 4) == "100.00%"
        assert format_ratio(0, 4) == "0.00%"

    def test_no_runs(self):
        assert format_ratio(0, 0) == NO_RATIO == "N/A"


class TestSummarize:
    def test_last_ok_is_end_of_latest_ok_run(self):
        runs = [run("a", 0, 240), run("a", 300, 300, NOT_OK)]
        status = summarize("a", runs)
        assert status.last_ok == T0 + timedelta(seconds=240)
        assert status.ok_ratio == "50.00%"
        assert (status.total_runs, status.ok_runs) == (2, 1)

    def test_never_ok(self):
        status = summarize("a", [run("a", 0, 60, NOT_OK)])
        assert status.last_ok is None
        assert status.ok_ratio == "0.00%"

    def test_empty_history(self):
        status = summarize("a", [], bucket_count=8)
        assert status.total_runs == 0
        assert status.last_ok is None
        assert status.ok_ratio == "N/A"
        assert status.first_time is None
        assert [b.classification for b in status.buckets] == [BucketClass.UNKNOWN] * 8

    def test_bar_bounds(self):
        status = summarize("a", [run("a", 300, 400, NOT_OK), run("a", 0, 240)])
        assert status.first_time == T0
        assert status.last_time == T0 + timedelta(seconds=400)


class TestComputeStatus:
    def test_groups_by_website_sorted_by_name(self):
        runs = [run("zeta", 0, 10), run("alpha", 0, 10, NOT_OK), run("zeta", 20, 30, NOT_OK)]
        statuses = compute_status(runs, bucket_count=4)
        assert [s.website for s in statuses] == ["alpha", "zeta"]
        assert statuses[1].total_runs == 2

    def test_configured_website_without_history_is_listed(self):
        statuses = compute_status([run("a", 0, 10)], websites=["b", "a"], bucket_count=4)
        assert [s.website for s in statuses] == ["a", "b"]
        assert statuses[1].ok_ratio == "N/A"

    def test_stored_website_no_longer_configured_is_kept(self):
        statuses = compute_status([run("old", 0, 10)], websites=["new"], bucket_count=4)
        assert [s.website for s in statuses] == ["new", "old"]
