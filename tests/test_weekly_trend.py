"""Tests for the trailing weekly windows and week-over-week deltas."""

from datetime import date, timedelta

import pytest

from ad_metrics.application.weekly_trend import week_over_week, weekly_trend, window_bounds
from ad_metrics.domain.models import WeeklyBucket


@pytest.fixture
def history(make_record):
    return [
        make_record(day="2024-03-28", campaign="A", spend="10", impressions="1000", clicks="10",
                    clicks_all="20", messages="2"),
        make_record(day="2024-03-22", campaign="A", spend="20", impressions="1000", clicks="10",
                    clicks_all="15", messages="3"),
        make_record(day="2024-03-21", campaign="A", spend="5", impressions="500", clicks="5",
                    clicks_all="5", messages="1"),
        make_record(day="2024-03-01", campaign="A", spend="7", impressions="700", clicks="7",
                    clicks_all="7", messages="0"),
        make_record(day="2024-02-20", campaign="A", spend="999", impressions="999"),
        make_record(day="2024-03-29", campaign="B", spend="50", impressions="5000"),
        make_record(day="", campaign="A", spend="123"),
    ]


class TestWindows:
    def test_four_contiguous_seven_day_windows_end_at_latest_day(self, history):
        buckets = weekly_trend(history, "A")

        assert len(buckets) == 4
        assert buckets[-1].end_date == "2024-03-28"
        for bucket in buckets:
            start = date.fromisoformat(bucket.start_date)
            end = date.fromisoformat(bucket.end_date)
            assert end - start == timedelta(days=6)
        for older, newer in zip(buckets, buckets[1:]):
            assert date.fromisoformat(newer.start_date) == date.fromisoformat(older.end_date) + timedelta(days=1)

    def test_window_sums_and_ratios(self, history):
        buckets = weekly_trend(history, "A")

        assert [bucket.spend for bucket in buckets] == pytest.approx([7, 0, 5, 30])
        latest = buckets[-1]
        assert latest.impressions == pytest.approx(2000)
        assert latest.clicks == pytest.approx(20)
        assert latest.clicks_all == pytest.approx(35)
        assert latest.conversations == pytest.approx(5)
        assert latest.ctr == pytest.approx(1.0)
        assert latest.ctr_all == pytest.approx(1.75)
        assert latest.cpm == pytest.approx(15.0)
        assert latest.cost_per_result == pytest.approx(6.0)

    def test_empty_window_has_zero_ratios(self, history):
        empty = weekly_trend(history, "A")[1]

        assert empty.is_empty
        assert empty.ctr == 0.0
        assert empty.cpm == 0.0

    def test_other_campaigns_are_ignored(self, history):
        buckets = weekly_trend(history, "B")

        assert buckets[-1].end_date == "2024-03-29"
        assert buckets[-1].spend == pytest.approx(50)
        assert sum(bucket.spend for bucket in buckets) == pytest.approx(50)

    def test_unknown_campaign_has_no_history(self, history):
        assert weekly_trend(history, "missing") == []

    def test_timestamped_days_use_the_date_part(self, make_record):
        records = [
            make_record(day="2024-03-28 00:00:00", campaign="A", spend="4"),
            make_record(day="2024-03-22", campaign="A", spend="6"),
        ]

        buckets = weekly_trend(records, "A")

        assert buckets[-1].end_date == "2024-03-28"
        assert buckets[-1].spend == pytest.approx(10)

    def test_no_iso_days_gives_no_windows(self, make_record, caplog):
        records = [make_record(day="28/03/2024", campaign="A", spend="4")]

        with caplog.at_level("WARNING"):
            assert weekly_trend(records, "A") == []
        assert "non-ISO day values: 28/03/2024" in caplog.text

    @pytest.mark.parametrize("bad_day", ["Total", "2024-04", "2024-99-99"])
    def test_malformed_day_does_not_hide_valid_history(self, make_record, caplog, bad_day):
        records = [
            make_record(day="2024-03-28", campaign="A", spend="10"),
            make_record(day=bad_day, campaign="A", spend="500"),
            make_record(day="2024-03-20", campaign="A", spend="3"),
        ]

        with caplog.at_level("WARNING"):
            buckets = weekly_trend(records, "A")

        assert len(buckets) == 4
        assert buckets[-1].end_date == "2024-03-28"
        assert sum(bucket.spend for bucket in buckets) == pytest.approx(13)
        assert bad_day in caplog.text

    def test_window_bounds_most_recent_first(self):
        bounds = window_bounds(date(2024, 1, 3))

        assert bounds[0] == ("2023-12-28", "2024-01-03")
        assert bounds[3] == ("2023-12-07", "2023-12-13")


class TestWeekOverWeek:
    def test_one_delta_set_per_later_window(self, history):
        deltas = week_over_week(weekly_trend(history, "A"))

        assert len(deltas) == 3
        assert set(deltas[0]) >= {"spend", "ctr", "ctr_all", "cpm", "cost_per_result", "conversations"}

    def test_previous_zero_is_unknown(self, history):
        deltas = week_over_week(weekly_trend(history, "A"))

        spend = deltas[1]["spend"]
        assert spend.previous == 0
        assert spend.pct_change is None
        assert spend.direction == "unknown"

    def test_growth_and_cost_polarity(self):
        buckets = [
            WeeklyBucket(start_date="2024-03-01", end_date="2024-03-07", spend=100, cpm=10, ctr=2.0),
            WeeklyBucket(start_date="2024-03-08", end_date="2024-03-14", spend=150, cpm=12, ctr=2.01),
        ]

        delta = week_over_week(buckets)[0]

        assert delta["spend"].pct_change == pytest.approx(50.0)
        assert delta["spend"].quality == "good"
        assert delta["cpm"].direction == "up"
        assert delta["cpm"].quality == "bad"
        assert delta["ctr"].direction == "flat"
        assert delta["ctr"].quality == "neutral"

    def test_no_buckets_no_deltas(self):
        assert week_over_week([]) == []
