"""Text rendering helpers for console output."""

from __future__ import annotations

from typing import List, Sequence

from ad_metrics.application.metrics import fmt_money, fmt_number, fmt_pct
from ad_metrics.domain.models import AggregateResult, SummaryTotals, TrendDelta, WeeklyBucket

_QUALITY_MARK = {"good": "+", "bad": "!", "neutral": "=", "unknown": "?"}


def summary_comment(summary: SummaryTotals) -> str:
    return (
        f"Spend {fmt_money(summary.spend)}, impressions {fmt_number(summary.impressions)}, "
        f"link clicks {fmt_number(summary.clicks)} (CTR {fmt_pct(summary.ctr)}), "
        f"conversations {fmt_number(summary.messages)} at {fmt_money(summary.cost_per_result)} each, "
        f"connect rate {fmt_pct(summary.connect_rate)}."
    )


def ranking_comment(title: str, rows: Sequence[AggregateResult], metric: str) -> str:
    if not rows:
        return f"{title}: no eligible rows."
    parts = [f"{idx}) {row.key} {row.metric(metric):.2f}" for idx, row in enumerate(rows, start=1)]
    return f"{title}: " + " | ".join(parts)


def _delta_text(delta: TrendDelta | None) -> str:
    if delta is None or delta.pct_change is None:
        return "-"
    return f"{fmt_pct(delta.pct_change, signed=True)}{_QUALITY_MARK[delta.quality]}"


def weekly_lines(buckets: Sequence[WeeklyBucket], deltas: Sequence[dict[str, TrendDelta]]) -> List[str]:
    if not buckets:
        return ["Insufficient history for a 4-week breakdown."]

    lines: list[str] = []
    for idx, bucket in enumerate(buckets):
        delta = deltas[idx - 1] if idx > 0 else {}
        lines.append(
            f"{bucket.start_date} to {bucket.end_date}: "
            f"spend {fmt_money(bucket.spend)} ({_delta_text(delta.get('spend'))}), "
            f"CTR all {fmt_pct(bucket.ctr_all)} ({_delta_text(delta.get('ctr_all'))}), "
            f"CTR link {fmt_pct(bucket.ctr)} ({_delta_text(delta.get('ctr'))}), "
            f"CPM {fmt_money(bucket.cpm)} ({_delta_text(delta.get('cpm'))}), "
            f"results {fmt_number(bucket.conversations)} ({_delta_text(delta.get('conversations'))}), "
            f"cost/result {fmt_money(bucket.cost_per_result)} ({_delta_text(delta.get('cost_per_result'))})"
        )
    return lines
