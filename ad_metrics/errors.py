"""Exceptions surfaced by the metrics engine to its callers."""

from __future__ import annotations

from typing import Any


class MetricsEngineError(Exception):
    """Base exception for all engine errors."""


class ConfigError(MetricsEngineError):
    """Raised when configuration values are missing or invalid."""


class FetchError(MetricsEngineError):
    """Transport or HTTP failure while fetching a source's raw text.

    Retryable; the caller keeps its last good snapshot.
    """

    def __init__(self, source_id: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"[{source_id}] {message}")
        self.source_id = source_id
        self.status_code = status_code


class EmptyDatasetError(MetricsEngineError):
    """Parsing succeeded but produced no usable records.

    Usually a misconfigured source link rather than a transport problem.
    """

    def __init__(self, source_id: str, diagnostics: Any = None) -> None:
        super().__init__(f"[{source_id}] source returned no usable rows")
        self.source_id = source_id
        self.diagnostics = diagnostics
