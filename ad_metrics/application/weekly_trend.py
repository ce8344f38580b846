"""Four trailing 7-day windows for one campaign, plus week-over-week deltas."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Sequence

import polars as pl

from ad_metrics.application.metrics import ratio_exprs
from ad_metrics.domain.models import RawRecord, TrendDelta, WeeklyBucket
from ad_metrics.domain.trend_policy import FLAT_THRESHOLD_PCT, TRACKED_METRICS, compare
from ad_metrics.ingestion import to_number

logger = logging.getLogger(__name__)

WINDOW_COUNT = 4
WINDOW_DAYS = 7
WEEKLY_SUM_FIELDS: dict[str, str] = {
    "spend": "spend",
    "impressions": "impressions",
    "clicks": "link_clicks",
    "clicks_all": "clicks_all",
    "conversations": "messages",
}
WEEKLY_RATIOS: dict[str, tuple[str, str, float]] = {
    "ctr": ("clicks", "impressions", 100.0),
    "ctr_all": ("clicks_all", "impressions", 100.0),
    "cpm": ("spend", "impressions", 1000.0),
    "cost_per_result": ("spend", "conversations", 1.0),
}


def _parse_day(day: str) -> date | None:
    try:
        return date.fromisoformat(day[:10])
    except ValueError:
        return None


def window_bounds(latest: date) -> list[tuple[str, str]]:
    """Inclusive (start, end) ISO bounds, most recent window first."""
    bounds: list[tuple[str, str]] = []
    for idx in range(WINDOW_COUNT):
        end = latest - timedelta(days=WINDOW_DAYS * idx)
        start = end - timedelta(days=WINDOW_DAYS - 1)
        bounds.append((start.isoformat(), end.isoformat()))
    return bounds


def weekly_trend_for(campaign_records: Sequence[RawRecord]) -> List[WeeklyBucket]:
    """Bucket one campaign's full history into 4 windows ending at its latest day.

    Rows whose day does not start with an ISO date are left out. Returns the
    windows oldest first, or an empty list when no row carries a usable date.
    """
    dated: list[RawRecord] = []
    days: list[date] = []
    skipped: list[str] = []
    for record in campaign_records:
        if not record.day:
            continue
        parsed = _parse_day(record.day)
        if parsed is None:
            skipped.append(record.day)
            continue
        dated.append(record)
        days.append(parsed)

    if skipped:
        logger.warning("Skipped %d rows with non-ISO day values: %s", len(skipped), ", ".join(sorted(set(skipped))))
    if not dated:
        return []

    latest = max(days)

    frame = pl.DataFrame(
        {
            "day": [record.day[:10] for record in dated],
            **{
                column: [to_number(record.field(source)) for record in dated]
                for column, source in WEEKLY_SUM_FIELDS.items()
            },
        },
        schema={"day": pl.Utf8, **{column: pl.Float64 for column in WEEKLY_SUM_FIELDS}},
    )

    buckets: list[WeeklyBucket] = []
    for start, end in window_bounds(latest):
        in_window = frame.filter((pl.col("day") >= start) & (pl.col("day") <= end))
        totals = (
            in_window.select([pl.col(column).sum().alias(column) for column in WEEKLY_SUM_FIELDS])
            .with_columns(ratio_exprs(WEEKLY_RATIOS))
            .to_dicts()[0]
        )
        buckets.append(WeeklyBucket.from_row({"start_date": start, "end_date": end, **totals}))

    buckets.reverse()
    return buckets


def weekly_trend(records: Iterable[RawRecord], campaign_name: str) -> List[WeeklyBucket]:
    """Weekly windows for ``campaign_name`` over the unfiltered record snapshot."""
    return weekly_trend_for([record for record in records if record.field("campaign_name") == campaign_name])


def week_over_week(
    buckets: Sequence[WeeklyBucket],
    flat_threshold_pct: float = FLAT_THRESHOLD_PCT,
) -> List[dict[str, TrendDelta]]:
    """Deltas of each window against its predecessor; one entry per window after the first."""
    deltas: list[dict[str, TrendDelta]] = []
    for previous, current in zip(buckets, buckets[1:]):
        deltas.append(
            {
                metric: compare(
                    metric,
                    getattr(current, metric),
                    getattr(previous, metric),
                    flat_threshold_pct=flat_threshold_pct,
                )
                for metric in TRACKED_METRICS
            }
        )
    return deltas
