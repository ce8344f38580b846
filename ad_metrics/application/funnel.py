"""Creative funnel-stage rankings and generic top-N selection."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ad_metrics.domain.models import AggregateResult, FunnelStage

DEFAULT_FUNNEL_SIZE = 5
DEFAULT_TOP_SIZE = 3
MIN_FUNNEL_IMPRESSIONS = 20
MIN_CONVERSION_CLICKS = 5

STAGE_RATE: dict[FunnelStage, str] = {
    FunnelStage.IMPACT: "impact_rate",
    FunnelStage.STORY: "story_rate",
    FunnelStage.OFFER: "offer_rate",
    FunnelStage.CTA: "cta_rate",
}


def _eligible(result: AggregateResult, stage: FunnelStage, min_impressions: float) -> bool:
    if stage is FunnelStage.CTA:
        return result.video_95 > 0
    return result.impressions > min_impressions


def top_by_metric(
    results: Iterable[AggregateResult],
    metric: str,
    n: int = DEFAULT_TOP_SIZE,
    min_clicks: float | None = None,
) -> List[AggregateResult]:
    """First ``n`` results by ``metric`` descending; ties keep input order."""
    candidates = [item for item in results if min_clicks is None or item.clicks > min_clicks]
    ordered = sorted(candidates, key=lambda item: -item.metric(metric))
    return ordered[: max(n, 0)]


def top_funnel(
    creatives: Iterable[AggregateResult],
    stage: FunnelStage,
    n: int = DEFAULT_FUNNEL_SIZE,
    min_impressions: float = MIN_FUNNEL_IMPRESSIONS,
) -> List[AggregateResult]:
    stage = FunnelStage(stage)
    eligible = [item for item in creatives if _eligible(item, stage, min_impressions)]
    return top_by_metric(eligible, STAGE_RATE[stage], n=n)


def funnel_rankings(
    creatives: Iterable[AggregateResult],
    n: int = DEFAULT_FUNNEL_SIZE,
    min_impressions: float = MIN_FUNNEL_IMPRESSIONS,
) -> Dict[FunnelStage, List[AggregateResult]]:
    pool = list(creatives)
    return {stage: top_funnel(pool, stage, n=n, min_impressions=min_impressions) for stage in FunnelStage}


def top_campaigns_by_conversion(
    campaigns: Iterable[AggregateResult],
    n: int = DEFAULT_TOP_SIZE,
    min_clicks: float = MIN_CONVERSION_CLICKS,
) -> List[AggregateResult]:
    return top_by_metric(campaigns, "conversion_rate", n=n, min_clicks=min_clicks)
