"""Shared fixtures for metrics engine tests."""

from __future__ import annotations

from typing import Callable

import pytest

from ad_metrics.domain.models import RawRecord

REPORT_HEADERS = [
    "Day",
    "Campaign Name",
    "Ad Set Name",
    "Ad Name",
    "Amount Spent",
    "Impressions",
    "Reach",
    "Link Clicks",
    "Clicks (All)",
    "Messaging Conversations Started",
    "Landing Page Views",
    "Gender",
    "Age",
    "3-Second Video Views",
    "Video Watches at 75%",
    "Video Watches at 95%",
    "CTR (Link Click-Through Rate)",
]

# logical field -> report column used by the fixtures below
COLUMN_FOR = {
    "day": "Day",
    "campaign": "Campaign Name",
    "ad_set": "Ad Set Name",
    "ad": "Ad Name",
    "spend": "Amount Spent",
    "impressions": "Impressions",
    "reach": "Reach",
    "clicks": "Link Clicks",
    "clicks_all": "Clicks (All)",
    "messages": "Messaging Conversations Started",
    "lpv": "Landing Page Views",
    "gender": "Gender",
    "age": "Age",
    "video_3s": "3-Second Video Views",
    "video_75": "Video Watches at 75%",
    "video_95": "Video Watches at 95%",
    "ctr_link": "CTR (Link Click-Through Rate)",
}


def _row_values(fields: dict[str, object]) -> dict[str, str]:
    values = {header: "" for header in REPORT_HEADERS}
    for name, value in fields.items():
        values[COLUMN_FOR[name]] = str(value)
    return values


@pytest.fixture
def make_record() -> Callable[..., RawRecord]:
    counter = {"index": 0}

    def _make(**fields: object) -> RawRecord:
        record = RawRecord.build(counter["index"], _row_values(fields))
        counter["index"] += 1
        return record

    return _make


@pytest.fixture
def make_csv() -> Callable[..., str]:
    """Render rows (keyword dicts as for ``make_record``) as report CSV text."""

    def _make(*rows: dict[str, object]) -> str:
        lines = [",".join(REPORT_HEADERS)]
        for fields in rows:
            values = _row_values(fields)
            lines.append(",".join(f'"{values[header]}"' for header in REPORT_HEADERS))
        return "\n".join(lines) + "\n"

    return _make


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "AD_METRICS_FETCH_TIMEOUT",
        "AD_METRICS_MAX_WORKERS",
        "AD_METRICS_STRICT_WIDTH",
        "AD_METRICS_MIN_IMPRESSIONS",
        "AD_METRICS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
