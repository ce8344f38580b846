"""Per-key aggregation of normalized record metrics with derived ratios."""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

import polars as pl

from ad_metrics.application.metrics import RATIO_DEFINITIONS, SUM_METRICS, SUM_SOURCE_FIELDS, derive_ratios, ratio_exprs
from ad_metrics.domain.models import (
    UNKNOWN_KEY,
    AggregateResult,
    GenderSplit,
    GroupBy,
    RawRecord,
    SummaryTotals,
    UnknownKeyPolicy,
)
from ad_metrics.ingestion import to_number

KEY_COLUMN = "key"
DEFAULT_UNKNOWN_KEY_POLICY: dict[GroupBy, UnknownKeyPolicy] = {
    GroupBy.CAMPAIGN: UnknownKeyPolicy.SKIP,
    GroupBy.CREATIVE: UnknownKeyPolicy.SKIP,
    GroupBy.GENDER: UnknownKeyPolicy.SENTINEL,
    GroupBy.AGE: UnknownKeyPolicy.SENTINEL,
}
FEMALE_TOKENS: tuple[str, ...] = ("female", "mulher", "women", "woman")
MALE_TOKENS: tuple[str, ...] = ("male", "homem", "man")
FRAME_SCHEMA: dict[str, pl.DataType] = {KEY_COLUMN: pl.Utf8, **{metric: pl.Float64 for metric in SUM_METRICS}}


def _metric_frame(
    records: Iterable[RawRecord],
    group_by: GroupBy | None,
    policy: UnknownKeyPolicy,
) -> pl.DataFrame:
    columns: dict[str, list] = {name: [] for name in FRAME_SCHEMA}
    for record in records:
        if group_by is None:
            key = ""
        else:
            key = record.field(group_by.value)
            if not key:
                if policy is UnknownKeyPolicy.SKIP:
                    continue
                key = UNKNOWN_KEY
        columns[KEY_COLUMN].append(key)
        for metric, source in SUM_SOURCE_FIELDS.items():
            columns[metric].append(to_number(record.field(source)))
    return pl.DataFrame(columns, schema=FRAME_SCHEMA)


def _sum_aggregations() -> list[pl.Expr]:
    return [pl.col(metric).sum().alias(metric) for metric in SUM_METRICS]


def aggregate(
    records: Iterable[RawRecord],
    group_by: GroupBy,
    unknown_key: UnknownKeyPolicy | None = None,
) -> Dict[str, AggregateResult]:
    """Reduce records into one result per group key, in first-seen key order.

    Records with an empty key are skipped or bucketed under ``UNKNOWN_KEY``
    depending on ``unknown_key`` (per-dimension default when omitted).
    """
    policy = unknown_key or DEFAULT_UNKNOWN_KEY_POLICY[group_by]
    frame = _metric_frame(records, group_by, policy)
    if frame.is_empty():
        return {}

    grouped = (
        frame.group_by(KEY_COLUMN, maintain_order=True)
        .agg(_sum_aggregations())
        .with_columns(ratio_exprs())
    )
    return {str(row[KEY_COLUMN]): AggregateResult.from_row(row) for row in grouped.to_dicts()}


def aggregate_campaigns(records: Iterable[RawRecord], unknown_key: UnknownKeyPolicy | None = None) -> Dict[str, AggregateResult]:
    by_campaign = aggregate(records, GroupBy.CAMPAIGN, unknown_key=unknown_key)
    ordered = sorted(by_campaign.values(), key=lambda result: -result.spend)
    return {result.key: result for result in ordered}


def merge_totals(results: Iterable[AggregateResult], key: str = "total") -> AggregateResult:
    """Sum raw totals across results and re-derive ratios from the sums."""
    totals: dict[str, float] = {metric: 0.0 for metric in SUM_METRICS}
    for result in results:
        for metric in SUM_METRICS:
            totals[metric] += getattr(result, metric)
    return AggregateResult.from_row({KEY_COLUMN: key, **totals, **derive_ratios(totals, RATIO_DEFINITIONS)})


def summarize(records: Sequence[RawRecord]) -> SummaryTotals:
    """Headline totals over every record, regardless of group keys."""
    frame = _metric_frame(records, None, UnknownKeyPolicy.SENTINEL)
    if frame.is_empty():
        return SummaryTotals()

    totals = frame.select(_sum_aggregations()).to_dicts()[0]
    ratios = derive_ratios(totals)
    reported_ctr = [to_number(record.field("ctr_link")) for record in records]
    return SummaryTotals(
        rows=frame.height,
        spend=totals["spend"],
        impressions=totals["impressions"],
        reach=totals["reach"],
        clicks=totals["clicks"],
        messages=totals["messages"],
        page_engagement=totals["page_engagement"],
        landing_page_views=totals["landing_page_views"],
        ctr=ratios["ctr"],
        reported_ctr_mean=sum(reported_ctr) / len(reported_ctr),
        cpc=ratios["cpc"],
        cpm=ratios["cpm"],
        cost_per_result=ratios["cost_per_result"],
        connect_rate=ratios["connect_rate"],
    )


def gender_split(records: Iterable[RawRecord]) -> GenderSplit:
    female = 0.0
    male = 0.0
    for record in records:
        gender = record.field("gender").lower()
        messages = to_number(record.field("messages"))
        if any(token in gender for token in FEMALE_TOKENS):
            female += messages
        elif any(token in gender for token in MALE_TOKENS):
            male += messages
    return GenderSplit(female=female, male=male)
