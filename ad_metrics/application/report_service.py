"""Command-line reporting pipeline: refresh, compute, export."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List

import polars as pl

from ad_metrics.application.dashboard_service import DashboardResult, DashboardSession, Snapshot
from ad_metrics.application.filtering import filter_records
from ad_metrics.application.funnel import STAGE_RATE
from ad_metrics.application.rendering import ranking_comment, summary_comment, weekly_lines
from ad_metrics.application.weekly_trend import week_over_week, weekly_trend
from ad_metrics.config import EngineConfig
from ad_metrics.domain.models import AggregateResult, FilterOptions, WeeklyBucket
from ad_metrics.infrastructure.excel_repository import rows_to_frame, save_output_workbook
from ad_metrics.infrastructure.report_exporter import save_csv, save_summary_json

logger = logging.getLogger(__name__)

FILE_SOURCE_ID = "file"


@dataclass(frozen=True)
class PipelineOptions:
    output_dir: Path
    source_id: str | None = None
    input_file: Path | None = None
    filters: FilterOptions = field(default_factory=FilterOptions)
    weekly_campaign: str = ""


def _aggregate_frame(results: Dict[str, AggregateResult] | List[AggregateResult]) -> pl.DataFrame:
    values = results.values() if isinstance(results, dict) else results
    return rows_to_frame(item.to_dict() for item in values)


def _weekly_frame(buckets: List[WeeklyBucket]) -> pl.DataFrame:
    return rows_to_frame(bucket.to_dict() for bucket in buckets)


def _load_snapshot(session: DashboardSession, options: PipelineOptions) -> Snapshot:
    if options.input_file is not None:
        logger.info("Reading report export from %s", options.input_file)
        text = options.input_file.read_text(encoding="utf-8-sig")
        return session.load_text(FILE_SOURCE_ID, text)
    return session.refresh(options.source_id)


def run_reporting_pipeline(config: EngineConfig, options: PipelineOptions) -> DashboardResult:
    pipeline_start = perf_counter()
    stage_start = pipeline_start
    stage_timings: list[tuple[str, float]] = []

    def _mark(stage_name: str) -> None:
        nonlocal stage_start
        now = perf_counter()
        stage_timings.append((stage_name, now - stage_start))
        stage_start = now

    stamp = date.today().isoformat()
    output_json_path = options.output_dir / "summary.json"
    output_excel_path = options.output_dir / f"metrics_{stamp}.xlsx"

    session = DashboardSession(config)
    try:
        snapshot = _load_snapshot(session, options)
    finally:
        session.fetcher.close()
    _mark("load_snapshot")

    result = session.dashboard(options.filters, source_id=snapshot.source_id)
    _mark("build_dashboard")

    weekly: list[WeeklyBucket] = []
    summary: dict[str, Any] = result.to_dict()
    if options.weekly_campaign:
        weekly = weekly_trend(snapshot.records, options.weekly_campaign)
        deltas = week_over_week(weekly)
        summary["weekly_trend"] = {
            "campaign_name": options.weekly_campaign,
            "windows": [bucket.to_dict() for bucket in weekly],
            "deltas": [{metric: delta.to_dict() for metric, delta in item.items()} for item in deltas],
        }
    _mark("weekly_trend")

    save_summary_json(output_json_path, summary)
    filtered = filter_records(snapshot.records, options.filters)
    save_csv(options.output_dir / f"campaign_rows_{stamp}.csv", filtered)
    save_csv(options.output_dir / f"creatives_{stamp}.csv", result.by_creative.values())
    _mark("save_json_csv")

    sheets = {
        "campaigns": _aggregate_frame(result.by_campaign),
        "creatives": _aggregate_frame(result.by_creative),
        "gender": _aggregate_frame(result.by_gender),
        "age": _aggregate_frame(result.by_age),
    }
    if weekly:
        sheets["weekly"] = _weekly_frame(weekly)
    excel_saved, excel_error_message = save_output_workbook(output_excel_path, sheets)
    _mark("save_excel")
    total_elapsed = perf_counter() - pipeline_start

    diagnostics = result.diagnostics
    print(
        "Summary prepared: "
        f"rows={diagnostics.rows_parsed}, "
        f"dropped={diagnostics.rows_dropped}, "
        f"campaigns={len(result.by_campaign)}, "
        f"creatives={len(result.by_creative)}"
    )
    print(summary_comment(result.summary))
    print(ranking_comment("Top CTR", result.top_ctr, "ctr"))
    print(ranking_comment("Top conversion", result.top_conversion, "conversion_rate"))
    for stage, rows in result.funnel.items():
        print(ranking_comment(f"Funnel {stage.value}", rows, STAGE_RATE[stage]))
    if options.weekly_campaign:
        print(f"Weekly trend for {options.weekly_campaign}:")
        for line in weekly_lines(weekly, week_over_week(weekly)):
            print(f"  {line}")
    stage_text = ", ".join([f"{name}={seconds:.3f}s" for name, seconds in stage_timings])
    print(f"Stage Timing: {stage_text}")
    print(f"Total Elapsed: {total_elapsed:.3f}s")
    print(f"Saved JSON: {output_json_path}")
    if excel_saved:
        print(f"Saved Excel: {output_excel_path}")
    else:
        print(f"Excel save skipped (file may be open/locked): {excel_error_message}")
    return result
