"""Domain value types for the ad-performance metrics engine."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

UNKNOWN_KEY = "Desconhecido"

# Ordered column aliases per logical field; the first non-empty column wins.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "day": ("Day",),
    "campaign_name": ("Campaign Name",),
    "ad_set_name": ("Ad Set Name",),
    "ad_name": ("Ad Name",),
    "spend": ("Amount Spent", "Valor Gasto", "Cost"),
    "impressions": ("Impressions",),
    "reach": ("Reach",),
    "link_clicks": ("Link Clicks",),
    "clicks_all": ("Clicks (All)", "Clicks"),
    "messages": ("Messaging Conversations Started",),
    "page_engagement": ("Page Engagement",),
    "landing_page_views": ("Landing Page Views",),
    "gender": ("Gender",),
    "age": ("Age",),
    "video_3s": ("3-Second Video Views", "3-Second Video Plays"),
    "video_75": ("Video Watches at 75%", "Video Plays at 75%"),
    "video_95": ("Video Watches at 95%", "Video Plays at 95%"),
    "ctr_link": ("CTR (Link Click-Through Rate)",),
}


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


class GroupBy(str, Enum):
    CAMPAIGN = "campaign_name"
    CREATIVE = "ad_name"
    GENDER = "gender"
    AGE = "age"


class UnknownKeyPolicy(str, Enum):
    SKIP = "skip"
    SENTINEL = "sentinel"


class FunnelStage(str, Enum):
    IMPACT = "impact"
    STORY = "story"
    OFFER = "offer"
    CTA = "cta"


@dataclass(frozen=True)
class RawRecord:
    """One row of the external report, immutable once parsed."""

    index: int
    values: Mapping[str, str]
    fields: Mapping[str, str]

    @classmethod
    def build(cls, index: int, values: Mapping[str, str]) -> "RawRecord":
        resolved: dict[str, str] = {}
        for name, aliases in FIELD_ALIASES.items():
            resolved[name] = next((values[col] for col in aliases if values.get(col)), "")
        return cls(index=index, values=MappingProxyType(dict(values)), fields=MappingProxyType(resolved))

    def get(self, column: str, default: str = "") -> str:
        return self.values.get(column, default)

    def field(self, name: str) -> str:
        return self.fields.get(name, "")

    @property
    def day(self) -> str:
        return self.field("day")

    def to_dict(self) -> dict[str, str]:
        return dict(self.values)


@dataclass(frozen=True)
class ParseDiagnostics:
    """Counters describing what the parser kept, dropped or defaulted."""

    total_lines: int = 0
    blank_lines: int = 0
    rows_parsed: int = 0
    rows_dropped_width: int = 0
    rows_dropped_empty: int = 0
    fields_defaulted: int = 0
    missing_fields: tuple[str, ...] = ()

    @property
    def rows_dropped(self) -> int:
        return self.rows_dropped_width + self.rows_dropped_empty

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["missing_fields"] = list(self.missing_fields)
        payload["rows_dropped"] = self.rows_dropped
        return payload


@dataclass(frozen=True)
class FilterOptions:
    """Active record filters; empty values mean "not filtering"."""

    start_date: str = ""
    end_date: str = ""
    month: int | None = None
    campaign_name: str = ""
    ad_set_name: str = ""

    def with_month(self, month: int | None) -> "FilterOptions":
        return replace(self, month=month, start_date="", end_date="")

    def with_date_range(self, start_date: str = "", end_date: str = "") -> "FilterOptions":
        return replace(self, start_date=start_date, end_date=end_date, month=None)

    @property
    def is_active(self) -> bool:
        return bool(
            self.start_date or self.end_date or self.month is not None or self.campaign_name or self.ad_set_name
        )


@dataclass(frozen=True)
class AggregateResult:
    """Finalized per-key totals plus ratios derived from those totals."""

    key: str
    spend: float = 0.0
    impressions: float = 0.0
    reach: float = 0.0
    clicks: float = 0.0
    messages: float = 0.0
    page_engagement: float = 0.0
    landing_page_views: float = 0.0
    video_3s: float = 0.0
    video_75: float = 0.0
    video_95: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cost_per_result: float = 0.0
    connect_rate: float = 0.0
    conversion_rate: float = 0.0
    impact_rate: float = 0.0
    story_rate: float = 0.0
    offer_rate: float = 0.0
    cta_rate: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AggregateResult":
        values: dict[str, Any] = {"key": str(row.get("key", "") or "")}
        for item in fields(cls):
            if item.name != "key":
                values[item.name] = _to_float(row.get(item.name))
        return cls(**values)

    def metric(self, name: str) -> float:
        if name == "key" or name not in {item.name for item in fields(self)}:
            raise KeyError(f"Unknown aggregate metric: {name}")
        return getattr(self, name)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SummaryTotals:
    """Headline totals over a filtered record set."""

    rows: int = 0
    spend: float = 0.0
    impressions: float = 0.0
    reach: float = 0.0
    clicks: float = 0.0
    messages: float = 0.0
    page_engagement: float = 0.0
    landing_page_views: float = 0.0
    ctr: float = 0.0
    reported_ctr_mean: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cost_per_result: float = 0.0
    connect_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GenderSplit:
    female: float = 0.0
    male: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeeklyBucket:
    """One trailing 7-day window of a single campaign."""

    start_date: str
    end_date: str
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    clicks_all: float = 0.0
    conversations: float = 0.0
    ctr: float = 0.0
    ctr_all: float = 0.0
    cpm: float = 0.0
    cost_per_result: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WeeklyBucket":
        values: dict[str, Any] = {
            "start_date": str(row.get("start_date", "")),
            "end_date": str(row.get("end_date", "")),
        }
        for item in fields(cls):
            if item.name not in values:
                values[item.name] = _to_float(row.get(item.name))
        return cls(**values)

    @property
    def is_empty(self) -> bool:
        return self.spend == 0 and self.impressions == 0 and self.clicks == 0 and self.conversations == 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrendDelta:
    """Comparison of one metric between a window and its predecessor."""

    metric: str
    current: float
    previous: float
    pct_change: float | None
    direction: str
    quality: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParseResult:
    records: list[RawRecord] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)
