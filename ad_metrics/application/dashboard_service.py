"""Application service for the dashboard refresh use case."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from ad_metrics.application.aggregation import aggregate, aggregate_campaigns, gender_split, summarize
from ad_metrics.application.filtering import distinct_values, filter_records
from ad_metrics.application.funnel import (
    DEFAULT_TOP_SIZE,
    MIN_FUNNEL_IMPRESSIONS,
    funnel_rankings,
    top_by_metric,
    top_campaigns_by_conversion,
)
from ad_metrics.application.weekly_trend import weekly_trend
from ad_metrics.config import EngineConfig, SourceConfig
from ad_metrics.domain.models import (
    AggregateResult,
    FilterOptions,
    FunnelStage,
    GenderSplit,
    GroupBy,
    ParseDiagnostics,
    RawRecord,
    SummaryTotals,
    WeeklyBucket,
)
from ad_metrics.errors import ConfigError, EmptyDatasetError, FetchError
from ad_metrics.infrastructure.sheet_source import SheetSourceFetcher
from ad_metrics.ingestion import ParserOptions, parse_with_diagnostics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable set of parsed records for one source, replaced wholesale on refresh."""

    source_id: str
    records: tuple[RawRecord, ...]
    diagnostics: ParseDiagnostics
    loaded_at: datetime


@dataclass(frozen=True)
class DashboardResult:
    source_id: str
    filters: FilterOptions
    diagnostics: ParseDiagnostics
    summary: SummaryTotals
    gender_split: GenderSplit
    by_campaign: Dict[str, AggregateResult]
    by_creative: Dict[str, AggregateResult]
    by_gender: Dict[str, AggregateResult]
    by_age: Dict[str, AggregateResult]
    funnel: Dict[FunnelStage, List[AggregateResult]]
    top_ctr: List[AggregateResult]
    top_messages: List[AggregateResult]
    top_connect_rate: List[AggregateResult]
    top_conversion: List[AggregateResult]
    campaigns: List[str] = field(default_factory=list)
    ad_sets: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        def _results(items: Any) -> list[dict[str, Any]]:
            values = items.values() if isinstance(items, dict) else items
            return [item.to_dict() for item in values]

        return {
            "source_id": self.source_id,
            "filters": {
                "start_date": self.filters.start_date,
                "end_date": self.filters.end_date,
                "month": self.filters.month,
                "campaign_name": self.filters.campaign_name,
                "ad_set_name": self.filters.ad_set_name,
            },
            "diagnostics": self.diagnostics.to_dict(),
            "summary": self.summary.to_dict(),
            "gender_split": self.gender_split.to_dict(),
            "by_campaign": _results(self.by_campaign),
            "by_creative": _results(self.by_creative),
            "by_gender": _results(self.by_gender),
            "by_age": _results(self.by_age),
            "funnel": {stage.value: _results(items) for stage, items in self.funnel.items()},
            "top_ctr": _results(self.top_ctr),
            "top_messages": _results(self.top_messages),
            "top_connect_rate": _results(self.top_connect_rate),
            "top_conversion": _results(self.top_conversion),
            "campaigns": list(self.campaigns),
            "ad_sets": list(self.ad_sets),
        }


def build_dashboard(
    records: Sequence[RawRecord],
    filters: FilterOptions | None = None,
    min_impressions: float = MIN_FUNNEL_IMPRESSIONS,
    diagnostics: ParseDiagnostics | None = None,
    source_id: str = "",
) -> DashboardResult:
    """Filter one snapshot and compute every aggregate view from the filtered rows."""
    active = filters or FilterOptions()
    filtered = filter_records(records, active)
    by_creative = aggregate(filtered, GroupBy.CREATIVE)
    by_campaign = aggregate_campaigns(filtered)
    creatives = list(by_creative.values())
    if active.is_active:
        logger.debug("Filters kept %d of %d records", len(filtered), len(records))

    return DashboardResult(
        source_id=source_id,
        filters=active,
        diagnostics=diagnostics or ParseDiagnostics(rows_parsed=len(records)),
        summary=summarize(filtered),
        gender_split=gender_split(filtered),
        by_campaign=by_campaign,
        by_creative=by_creative,
        by_gender=aggregate(filtered, GroupBy.GENDER),
        by_age=aggregate(filtered, GroupBy.AGE),
        funnel=funnel_rankings(creatives, min_impressions=min_impressions),
        top_ctr=top_by_metric(creatives, "ctr", n=DEFAULT_TOP_SIZE),
        top_messages=top_by_metric(creatives, "messages", n=DEFAULT_TOP_SIZE),
        top_connect_rate=top_by_metric(creatives, "connect_rate", n=DEFAULT_TOP_SIZE),
        top_conversion=top_campaigns_by_conversion(by_campaign.values()),
        campaigns=distinct_values(records, "campaign_name"),
        ad_sets=distinct_values(records, "ad_set_name"),
    )


def snapshot_from_text(source_id: str, text: str, options: ParserOptions | None = None) -> Snapshot:
    """Parse raw text into a snapshot; raises EmptyDatasetError when nothing usable remains."""
    parsed = parse_with_diagnostics(text, options)
    if not parsed.records:
        raise EmptyDatasetError(source_id, diagnostics=parsed.diagnostics)
    return Snapshot(
        source_id=source_id,
        records=tuple(parsed.records),
        diagnostics=parsed.diagnostics,
        loaded_at=datetime.now(timezone.utc),
    )


class DashboardSession:
    """Owns the current snapshot per source and swaps it only after a successful refresh."""

    def __init__(self, config: EngineConfig, fetcher: SheetSourceFetcher | None = None) -> None:
        self.config = config
        self.fetcher = fetcher or SheetSourceFetcher(timeout=config.fetch_timeout)
        self.parser_options = ParserOptions(strict_width=config.strict_width)
        self._lock = threading.Lock()
        self._tickets = itertools.count(1)
        self._applied: dict[str, int] = {}
        self._snapshots: dict[str, Snapshot] = {}

    def _resolve_source(self, source_id: str | None) -> SourceConfig:
        if source_id:
            return self.config.source(source_id)
        source = self.config.selected_source
        if source is None:
            raise ConfigError("No report sources configured")
        return source

    def _apply(self, ticket: int, snapshot: Snapshot) -> bool:
        with self._lock:
            if ticket < self._applied.get(snapshot.source_id, 0):
                logger.info("Discarding stale refresh of source %s", snapshot.source_id)
                return False
            self._applied[snapshot.source_id] = ticket
            self._snapshots[snapshot.source_id] = snapshot
            return True

    def snapshot(self, source_id: str | None = None) -> Snapshot | None:
        key = source_id or self._resolve_source(None).id
        with self._lock:
            return self._snapshots.get(key)

    def load_text(self, source_id: str, text: str) -> Snapshot:
        """Install a snapshot from already-obtained text (file or pasted export)."""
        ticket = next(self._tickets)
        snapshot = snapshot_from_text(source_id, text, self.parser_options)
        self._apply(ticket, snapshot)
        return snapshot

    def refresh(self, source_id: str | None = None) -> Snapshot:
        """Fetch and parse one source.

        On FetchError or EmptyDatasetError the previous snapshot stays in place
        and the error propagates to the caller.
        """
        source = self._resolve_source(source_id)
        ticket = next(self._tickets)
        text = self.fetcher.fetch_raw(source)
        snapshot = snapshot_from_text(source.id, text, self.parser_options)
        self._apply(ticket, snapshot)
        logger.info(
            "Refreshed source %s: %d rows parsed, %d dropped",
            source.id,
            snapshot.diagnostics.rows_parsed,
            snapshot.diagnostics.rows_dropped,
        )
        return snapshot

    def refresh_all(self) -> dict[str, Snapshot | FetchError | EmptyDatasetError]:
        """Refresh every configured source concurrently; each outcome is independent."""
        sources = list(self.config.sources)
        tickets = {source.id: next(self._tickets) for source in sources}
        fetched = self.fetcher.fetch_many(sources, max_workers=self.config.max_workers)

        outcomes: dict[str, Snapshot | FetchError | EmptyDatasetError] = {}
        for source in sources:
            payload = fetched[source.id]
            if isinstance(payload, FetchError):
                outcomes[source.id] = payload
                continue
            try:
                snapshot = snapshot_from_text(source.id, payload, self.parser_options)
            except EmptyDatasetError as exc:
                logger.warning("Source %s returned no usable rows", source.id)
                outcomes[source.id] = exc
                continue
            self._apply(tickets[source.id], snapshot)
            outcomes[source.id] = snapshot
        return outcomes

    def dashboard(self, filters: FilterOptions | None = None, source_id: str | None = None) -> DashboardResult:
        snapshot = self.snapshot(source_id)
        if snapshot is None:
            raise EmptyDatasetError(source_id or self._resolve_source(None).id)
        return build_dashboard(
            snapshot.records,
            filters=filters,
            min_impressions=self.config.min_impressions,
            diagnostics=snapshot.diagnostics,
            source_id=snapshot.source_id,
        )

    def weekly(self, campaign_name: str, source_id: str | None = None) -> List[WeeklyBucket]:
        """Weekly windows over the unfiltered snapshot, independent of active filters."""
        snapshot = self.snapshot(source_id)
        if snapshot is None:
            return []
        return weekly_trend(snapshot.records, campaign_name)
