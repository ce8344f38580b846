"""Infrastructure adapter writing result tables to an Excel workbook."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

import polars as pl
from openpyxl import Workbook
from xlsxwriter import Workbook as XlsxWorkbook

logger = logging.getLogger(__name__)

MAX_SHEET_NAME = 31


def rows_to_frame(rows: Iterable[Mapping[str, Any]]) -> pl.DataFrame:
    materialized = [dict(row) for row in rows]
    if not materialized:
        return pl.DataFrame()
    return pl.DataFrame(materialized)


def _sheet_name(name: str) -> str:
    return str(name)[:MAX_SHEET_NAME]


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    try:
        with XlsxWorkbook(str(path)) as workbook:
            for sheet_name, frame in sheets.items():
                frame.write_excel(workbook=workbook, worksheet=_sheet_name(sheet_name))
    except Exception as exc:
        logger.debug("polars Excel writer failed, falling back to openpyxl: %s", exc)
        return False
    return True


def write_output_excel(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """Write one sheet per metric table; openpyxl takes over when polars cannot."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)
    if sheets and _write_with_polars(excel_path, sheets):
        return

    workbook = Workbook()
    workbook.remove(workbook.active)
    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=_sheet_name(sheet_name))
        worksheet.append(frame.columns)
        for row in frame.iter_rows():
            # openpyxl cannot store NaN or inf
            worksheet.append([None if isinstance(value, float) and not math.isfinite(value) else value for value in row])
    if not sheets:
        workbook.create_sheet(title="empty")
    workbook.save(excel_path)


def save_output_workbook(path: Path, sheets: dict[str, pl.DataFrame]) -> tuple[bool, str]:
    """Returns ``(saved, error)``; a locked file is reported, not raised."""
    try:
        write_output_excel(path, sheets)
    except PermissionError as exc:
        logger.warning("Excel output is locked: %s", path)
        return False, str(exc)
    return True, ""
