"""Ad performance metrics engine package."""

from .application import DashboardResult, DashboardSession, build_dashboard, run_reporting_pipeline
from .errors import ConfigError, EmptyDatasetError, FetchError, MetricsEngineError
from .ingestion import parse_records, parse_with_diagnostics, to_number

__all__ = [
    "parse_records",
    "parse_with_diagnostics",
    "to_number",
    "DashboardResult",
    "DashboardSession",
    "build_dashboard",
    "run_reporting_pipeline",
    "MetricsEngineError",
    "ConfigError",
    "FetchError",
    "EmptyDatasetError",
]
