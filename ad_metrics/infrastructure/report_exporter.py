"""Infrastructure adapter for CSV and JSON export targets."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ad_metrics.domain.models import RawRecord

QUOTE = '"'


def _row_mapping(row: Any) -> Mapping[str, Any]:
    if isinstance(row, RawRecord):
        return row.values
    if isinstance(row, Mapping):
        return row
    if is_dataclass(row) and not isinstance(row, type):
        return asdict(row)
    raise TypeError(f"Cannot export row of type {type(row).__name__}")


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _quote(text: str) -> str:
    return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE


def serialize_csv(rows: Iterable[Any], headers: Sequence[str] | None = None) -> str:
    """Render rows as comma-delimited text with every field quoted.

    Headers default to the keys of the first row. Output is empty when there
    is nothing to export.
    """
    mappings = [_row_mapping(row) for row in rows]
    if headers is None:
        if not mappings:
            return ""
        headers = list(mappings[0].keys())
    lines = [",".join(_quote(str(name)) for name in headers)]
    for mapping in mappings:
        lines.append(",".join(_quote(_cell_text(mapping.get(name))) for name in headers))
    return "\n".join(lines)


def save_csv(path: Path, rows: Iterable[Any], headers: Sequence[str] | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_csv(rows, headers=headers), encoding="utf-8")


def save_summary_json(path: Path, summary: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8")
