"""Shared ratio definitions and numeric/formatting utilities."""

from __future__ import annotations

from typing import Any, Mapping

import polars as pl

SUM_METRICS: list[str] = [
    "spend",
    "impressions",
    "reach",
    "clicks",
    "messages",
    "page_engagement",
    "landing_page_views",
    "video_3s",
    "video_75",
    "video_95",
]
# sum column -> logical record field it is read from
SUM_SOURCE_FIELDS: dict[str, str] = {
    "spend": "spend",
    "impressions": "impressions",
    "reach": "reach",
    "clicks": "link_clicks",
    "messages": "messages",
    "page_engagement": "page_engagement",
    "landing_page_views": "landing_page_views",
    "video_3s": "video_3s",
    "video_75": "video_75",
    "video_95": "video_95",
}
# ratio -> (numerator, denominator, scale); zero when the denominator is not positive
RATIO_DEFINITIONS: dict[str, tuple[str, str, float]] = {
    "ctr": ("clicks", "impressions", 100.0),
    "cpc": ("spend", "clicks", 1.0),
    "cpm": ("spend", "impressions", 1000.0),
    "cost_per_result": ("spend", "messages", 1.0),
    "connect_rate": ("landing_page_views", "clicks", 100.0),
    "conversion_rate": ("messages", "clicks", 100.0),
    "impact_rate": ("video_3s", "impressions", 100.0),
    "story_rate": ("video_75", "impressions", 100.0),
    "offer_rate": ("video_95", "impressions", 100.0),
    "cta_rate": ("clicks", "video_95", 100.0),
}


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    return float(value)


def safe_ratio(num: float, den: float, scale: float = 1.0) -> float:
    if den <= 0:
        return 0.0
    return num / den * scale


def safe_ratio_expr(num: pl.Expr, den: pl.Expr, scale: float = 1.0) -> pl.Expr:
    safe_den = pl.when(den > 0).then(den).otherwise(None)
    return (num / safe_den * scale).fill_null(0.0)


def ratio_exprs(definitions: Mapping[str, tuple[str, str, float]] = RATIO_DEFINITIONS) -> list[pl.Expr]:
    return [
        safe_ratio_expr(pl.col(num), pl.col(den), scale).alias(name)
        for name, (num, den, scale) in definitions.items()
    ]


def derive_ratios(
    totals: Mapping[str, Any],
    definitions: Mapping[str, tuple[str, str, float]] = RATIO_DEFINITIONS,
) -> dict[str, float]:
    return {
        name: safe_ratio(to_float(totals.get(num)), to_float(totals.get(den)), scale)
        for name, (num, den, scale) in definitions.items()
    }


def fmt_money(value: float | None, symbol: str = "R$") -> str:
    if value is None:
        return f"{symbol} 0.00"
    return f"{symbol} {value:,.2f}"


def fmt_number(value: float | None) -> str:
    if value is None:
        return "0"
    return f"{value:,.0f}"


def fmt_pct(value: float | None, signed: bool = False) -> str:
    if value is None:
        return "N/A"
    if signed:
        return f"{value:+.1f}%"
    return f"{value:.2f}%"
