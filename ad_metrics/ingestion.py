"""Delimited-text ingestion and locale-aware numeric normalization."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Sequence

from ad_metrics.domain.models import FIELD_ALIASES, ParseDiagnostics, ParseResult, RawRecord

logger = logging.getLogger(__name__)

DELIMITER = ","
QUOTE = '"'

_NON_NUMERIC_RE = re.compile(r"[^\d,.\-]")
_FLOAT_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


@dataclass(frozen=True)
class ParserOptions:
    """``strict_width`` drops rows whose field count differs from the header.

    When False, any row with a non-empty field is kept, short rows are padded
    with empty text and extra fields are ignored.
    """

    strict_width: bool = True
    delimiter: str = DELIMITER


def to_number(value: Any) -> float:
    """Convert locale-formatted numeric text (``"R$ 1.234,56"``) to a float.

    Total: unparseable or negative input yields ``0``.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if not value:
        return 0.0

    clean = _NON_NUMERIC_RE.sub("", str(value))
    if not clean:
        return 0.0
    if "," in clean:
        clean = clean.replace(".", "").replace(",", ".", 1)

    match = _FLOAT_PREFIX_RE.match(clean)
    if match is None:
        return 0.0
    number = float(match.group(0))
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = str(value).strip() if value not in (None, "") else f"column_{idx + 1}"
        count = seen.get(base, 0)
        name = base if count == 0 else f"{base}_{count + 1}"
        seen[base] = count + 1
        headers.append(name)
    return headers


def _split_line(line: str, delimiter: str = DELIMITER) -> list[str]:
    """Tokenize one line, honoring double-quoted spans and ``""`` escapes."""
    fields: list[str] = []
    buffer: list[str] = []
    in_quotes = False
    quoted = False

    def _finish() -> str:
        text = "".join(buffer)
        return text if quoted else text.strip()

    idx = 0
    length = len(line)
    while idx < length:
        char = line[idx]
        if in_quotes:
            if char == QUOTE:
                if idx + 1 < length and line[idx + 1] == QUOTE:
                    buffer.append(QUOTE)
                    idx += 2
                    continue
                in_quotes = False
            else:
                buffer.append(char)
        elif char == QUOTE:
            if not quoted and not "".join(buffer).strip():
                buffer = []
            in_quotes = True
            quoted = True
        elif char == delimiter:
            fields.append(_finish())
            buffer = []
            quoted = False
        elif quoted and char.isspace() and not line[idx:].split(delimiter, 1)[0].strip():
            pass
        else:
            buffer.append(char)
        idx += 1

    fields.append(_finish())
    return fields


def _split_lines(text: str) -> list[str]:
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def parse_with_diagnostics(text: str, options: ParserOptions | None = None) -> ParseResult:
    """Parse delimited text into records plus counters of what was dropped."""
    opts = options or ParserOptions()
    lines = _split_lines((text or "").lstrip("\ufeff"))
    if len(lines) < 2:
        return ParseResult(diagnostics=ParseDiagnostics(total_lines=len(lines) if text else 0))

    headers = _normalize_headers(_split_line(lines[0], opts.delimiter))
    width = len(headers)
    records: list[RawRecord] = []
    blank_lines = 0
    dropped_width = 0
    dropped_empty = 0
    fields_defaulted = 0

    for line in lines[1:]:
        if not line.strip():
            blank_lines += 1
            continue

        row = _split_line(line, opts.delimiter)
        if len(row) != width:
            if opts.strict_width:
                dropped_width += 1
                continue
            if len(row) < width:
                fields_defaulted += width - len(row)
                row = row + [""] * (width - len(row))
            else:
                row = row[:width]

        if not any(row):
            dropped_empty += 1
            continue

        records.append(RawRecord.build(len(records), dict(zip(headers, row))))

    header_set = set(headers)
    missing = tuple(
        name for name, aliases in FIELD_ALIASES.items() if not any(alias in header_set for alias in aliases)
    )
    diagnostics = ParseDiagnostics(
        total_lines=len(lines),
        blank_lines=blank_lines,
        rows_parsed=len(records),
        rows_dropped_width=dropped_width,
        rows_dropped_empty=dropped_empty,
        fields_defaulted=fields_defaulted,
        missing_fields=missing,
    )
    if diagnostics.rows_dropped:
        logger.debug(
            "Dropped %d rows (width mismatch=%d, empty=%d)",
            diagnostics.rows_dropped,
            dropped_width,
            dropped_empty,
        )
    if missing:
        logger.info("Source is missing columns for: %s", ", ".join(missing))
    return ParseResult(records=records, headers=headers, diagnostics=diagnostics)


def parse_records(text: str, options: ParserOptions | None = None) -> list[RawRecord]:
    return parse_with_diagnostics(text, options).records
