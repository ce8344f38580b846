"""Domain policy for classifying week-over-week metric movements."""

from __future__ import annotations

from ad_metrics.domain.models import TrendDelta

HIGHER_IS_BETTER = "higher"
LOWER_IS_BETTER = "lower"

METRIC_POLARITY: dict[str, str] = {
    "spend": HIGHER_IS_BETTER,
    "impressions": HIGHER_IS_BETTER,
    "clicks": HIGHER_IS_BETTER,
    "clicks_all": HIGHER_IS_BETTER,
    "conversations": HIGHER_IS_BETTER,
    "ctr": HIGHER_IS_BETTER,
    "ctr_all": HIGHER_IS_BETTER,
    "cpm": LOWER_IS_BETTER,
    "cost_per_result": LOWER_IS_BETTER,
}
TRACKED_METRICS: tuple[str, ...] = tuple(METRIC_POLARITY)
FLAT_THRESHOLD_PCT = 1.0


def direction(pct_change: float | None, flat_threshold_pct: float = FLAT_THRESHOLD_PCT) -> str:
    if pct_change is None:
        return "unknown"
    if abs(pct_change) < flat_threshold_pct:
        return "flat"
    return "up" if pct_change > 0 else "down"


def quality(metric: str, trend: str) -> str:
    if trend == "unknown":
        return "unknown"
    if trend == "flat":
        return "neutral"
    polarity = METRIC_POLARITY.get(metric)
    if polarity is None:
        raise KeyError(f"No trend polarity declared for metric: {metric}")
    improving = trend == "down" if polarity == LOWER_IS_BETTER else trend == "up"
    return "good" if improving else "bad"


def compare(
    metric: str,
    current: float,
    previous: float,
    flat_threshold_pct: float = FLAT_THRESHOLD_PCT,
) -> TrendDelta:
    """Percentage change of ``current`` against ``previous`` with its goodness tag.

    A zero previous value has no defined percentage change.
    """
    pct_change = None if previous == 0 else (current - previous) / previous * 100
    trend = direction(pct_change, flat_threshold_pct=flat_threshold_pct)
    return TrendDelta(
        metric=metric,
        current=current,
        previous=previous,
        pct_change=pct_change,
        direction=trend,
        quality=quality(metric, trend),
    )
