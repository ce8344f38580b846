"""Application layer package."""

from .aggregation import aggregate, aggregate_campaigns, merge_totals, summarize
from .dashboard_service import DashboardResult, DashboardSession, build_dashboard
from .filtering import filter_records
from .funnel import top_by_metric, top_funnel
from .report_service import run_reporting_pipeline
from .weekly_trend import week_over_week, weekly_trend

__all__ = [
    "aggregate",
    "aggregate_campaigns",
    "merge_totals",
    "summarize",
    "filter_records",
    "top_by_metric",
    "top_funnel",
    "weekly_trend",
    "week_over_week",
    "DashboardResult",
    "DashboardSession",
    "build_dashboard",
    "run_reporting_pipeline",
]
