"""Engine configuration: configured report sources plus environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ad_metrics.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 20.0
DEFAULT_MAX_WORKERS = 4
DEFAULT_MIN_IMPRESSIONS = 20
DEFAULT_LOG_LEVEL = "INFO"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class SourceConfig:
    """A named report source; ``url`` is any link resolvable to a CSV export."""

    id: str
    name: str
    url: str

    @classmethod
    def from_dict(cls, payload: Any) -> "SourceConfig":
        if not isinstance(payload, dict):
            raise ConfigError(f"Source entry must be an object, got {type(payload).__name__}")
        missing = [key for key in ("id", "url") if not str(payload.get(key, "") or "").strip()]
        if missing:
            raise ConfigError(f"Source entry missing required keys: {missing}")
        source_id = str(payload["id"]).strip()
        return cls(id=source_id, name=str(payload.get("name") or source_id), url=str(payload["url"]).strip())


@dataclass(frozen=True)
class EngineConfig:
    sources: tuple[SourceConfig, ...] = ()
    selected_source_id: str = ""
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    strict_width: bool = False
    min_impressions: int = DEFAULT_MIN_IMPRESSIONS
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def selected_source(self) -> SourceConfig | None:
        """The selected source, falling back to the first configured one."""
        if not self.sources:
            return None
        for source in self.sources:
            if source.id == self.selected_source_id:
                return source
        return self.sources[0]

    def source(self, source_id: str) -> SourceConfig:
        for source in self.sources:
            if source.id == source_id:
                return source
        raise ConfigError(f"Unknown source id: {source_id}")


def _env_float(name: str, default: float, minimum_exclusive: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw}") from exc
    if value <= minimum_exclusive:
        raise ConfigError(f"{name} must be > {minimum_exclusive}, got {value}")
    return value


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid {name}: {raw}")


def _env_log_level(name: str, default: str) -> str:
    level = (os.getenv(name) or default).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Invalid {name}: {level}")
    return level


def _read_sources_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file must contain an object: {path}")
    return payload


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load sources from a JSON file (optional) and validate environment overrides."""
    payload: dict[str, Any] = {}
    if path is not None:
        payload = _read_sources_file(Path(path))

    raw_sources = payload.get("sources", [])
    if not isinstance(raw_sources, list):
        raise ConfigError("'sources' must be a list")
    sources = tuple(SourceConfig.from_dict(item) for item in raw_sources)
    ids = [source.id for source in sources]
    duplicates = sorted({source_id for source_id in ids if ids.count(source_id) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate source ids: {duplicates}")

    config = EngineConfig(
        sources=sources,
        selected_source_id=str(payload.get("selected", "") or ""),
        fetch_timeout=_env_float("AD_METRICS_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
        max_workers=_env_int("AD_METRICS_MAX_WORKERS", DEFAULT_MAX_WORKERS, minimum=1),
        strict_width=_env_bool("AD_METRICS_STRICT_WIDTH", False),
        min_impressions=_env_int("AD_METRICS_MIN_IMPRESSIONS", DEFAULT_MIN_IMPRESSIONS, minimum=0),
        log_level=_env_log_level("AD_METRICS_LOG_LEVEL", DEFAULT_LOG_LEVEL),
    )
    logger.debug("Loaded %d sources (selected=%r)", len(config.sources), config.selected_source_id)
    return config
