"""Infrastructure layer package."""

from .excel_repository import save_output_workbook
from .report_exporter import save_csv, save_summary_json, serialize_csv
from .sheet_source import SheetSourceFetcher, resolve_export_url

__all__ = [
    "SheetSourceFetcher",
    "resolve_export_url",
    "save_output_workbook",
    "save_csv",
    "save_summary_json",
    "serialize_csv",
]
