"""Record filtering by date range, calendar month, campaign and ad set."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ad_metrics.domain.models import FilterOptions, RawRecord

MIN_DAY_LENGTH = 10


def _month_matches(day: str, month: int) -> bool:
    parts = day.split("-")
    if len(parts) < 2:
        # not a dash-delimited date; the month filter cannot apply
        return True
    try:
        return int(parts[1]) - 1 == month
    except ValueError:
        return False


def matches(record: RawRecord, options: FilterOptions) -> bool:
    day = record.day
    if len(day) >= MIN_DAY_LENGTH:
        day_key = day[:MIN_DAY_LENGTH]
        if options.start_date and day_key < options.start_date:
            return False
        if options.end_date and day_key > options.end_date:
            return False
        if options.month is not None and not _month_matches(day, options.month):
            return False

    if options.campaign_name and record.field("campaign_name") != options.campaign_name:
        return False
    if options.ad_set_name and record.field("ad_set_name") != options.ad_set_name:
        return False
    return True


def filter_records(records: Iterable[RawRecord], options: FilterOptions | None = None) -> List[RawRecord]:
    """Return the records passing every supplied filter, in input order."""
    if options is None:
        return list(records)
    return [record for record in records if matches(record, options)]


def distinct_values(records: Sequence[RawRecord], field_name: str) -> List[str]:
    return sorted({value for value in (record.field(field_name) for record in records) if value})
