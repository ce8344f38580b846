"""Tests for record filtering."""

from ad_metrics.application.filtering import distinct_values, filter_records
from ad_metrics.domain.models import FilterOptions


class TestMonthFilter:
    def test_zero_based_month_keeps_matching_rows(self, make_record):
        records = [
            make_record(day="2024-03-05", campaign="A"),
            make_record(day="2024-03-20", campaign="A"),
        ]

        assert filter_records(records, FilterOptions(month=2)) == records
        assert filter_records(records, FilterOptions(month=3)) == []

    def test_month_does_not_apply_to_short_or_undated_rows(self, make_record):
        records = [make_record(day=""), make_record(day="2024-03")]

        assert filter_records(records, FilterOptions(month=5)) == records

    def test_month_passes_non_dashed_dates(self, make_record):
        record = make_record(day="05/03/2024")

        assert filter_records([record], FilterOptions(month=0)) == [record]

    def test_with_month_clears_date_range(self):
        options = FilterOptions(start_date="2024-01-01", end_date="2024-01-31").with_month(4)

        assert options.month == 4
        assert options.start_date == ""
        assert options.end_date == ""


class TestDateRangeFilter:
    def test_bounds_are_inclusive(self, make_record):
        records = [
            make_record(day="2024-03-09"),
            make_record(day="2024-03-10"),
            make_record(day="2024-03-20"),
            make_record(day="2024-03-31"),
            make_record(day="2024-04-01"),
        ]

        kept = filter_records(records, FilterOptions(start_date="2024-03-10", end_date="2024-03-31"))

        assert [record.day for record in kept] == ["2024-03-10", "2024-03-20", "2024-03-31"]

    def test_timestamped_days_compare_on_their_date(self, make_record):
        records = [
            make_record(day="2024-03-01 08:30:00"),
            make_record(day="2024-03-31 00:00:00"),
            make_record(day="2024-04-01 00:00:00"),
        ]

        kept = filter_records(records, FilterOptions(start_date="2024-03-01", end_date="2024-03-31"))

        assert kept == records[:2]

    def test_open_ended_range(self, make_record):
        records = [make_record(day="2024-03-09"), make_record(day="2024-03-10")]

        kept = filter_records(records, FilterOptions(start_date="2024-03-10"))

        assert [record.day for record in kept] == ["2024-03-10"]

    def test_rows_without_day_pass_date_filters(self, make_record):
        record = make_record(day="", campaign="A")

        assert filter_records([record], FilterOptions(start_date="2024-01-01", end_date="2024-01-31")) == [record]

    def test_with_date_range_clears_month(self):
        options = FilterOptions(month=2).with_date_range("2024-01-01", "2024-01-31")

        assert options.month is None
        assert options.is_active


class TestNameFilters:
    def test_campaign_and_ad_set_match_exactly(self, make_record):
        records = [
            make_record(campaign="A", ad_set="x"),
            make_record(campaign="A", ad_set="y"),
            make_record(campaign="AB", ad_set="x"),
        ]

        kept = filter_records(records, FilterOptions(campaign_name="A", ad_set_name="x"))

        assert kept == [records[0]]

    def test_no_options_keeps_everything_in_order(self, make_record):
        records = [make_record(campaign="B"), make_record(campaign="A")]

        assert filter_records(records) == records
        assert filter_records(records, FilterOptions()) == records
        assert not FilterOptions().is_active

    def test_distinct_values_are_sorted_and_non_empty(self, make_record):
        records = [make_record(campaign="B"), make_record(campaign=""), make_record(campaign="A"), make_record(campaign="B")]

        assert distinct_values(records, "campaign_name") == ["A", "B"]
