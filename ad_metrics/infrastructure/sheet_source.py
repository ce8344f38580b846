"""Infrastructure adapter fetching raw report text from spreadsheet export links."""

from __future__ import annotations

import functools
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import requests

from ad_metrics.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_WORKERS, SourceConfig
from ad_metrics.errors import FetchError

logger = logging.getLogger(__name__)

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
_SHEET_ID_RE = re.compile(r"/d/([a-zA-Z0-9\-_]+)")
_GID_RE = re.compile(r"[#&?]gid=([0-9]+)")


def resolve_export_url(link: str | None) -> str | None:
    """Turn a spreadsheet view/edit link into its CSV export URL.

    Plain http(s) links without a spreadsheet id are returned unchanged.
    """
    if not link:
        return None
    text = link.strip()
    id_match = _SHEET_ID_RE.search(text)
    if id_match is None:
        return text if text.startswith(("http://", "https://")) else None
    gid_match = _GID_RE.search(text)
    return EXPORT_URL_TEMPLATE.format(sheet_id=id_match.group(1), gid=gid_match.group(1) if gid_match else "0")


def _with_cache_buster(url: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={int(time.time() * 1000)}"


class SheetSourceFetcher:
    """Fetches the raw CSV text of configured report sources."""

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch_raw(self, source: SourceConfig) -> str:
        url = resolve_export_url(source.url)
        if url is None:
            raise FetchError(source.id, f"Cannot resolve an export URL from {source.url!r}")

        try:
            response = self._session.get(_with_cache_buster(url), timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(source.id, f"Request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(source.id, f"HTTP Error {response.status_code}", status_code=response.status_code)

        logger.info("Fetched source %s (%d bytes)", source.id, len(response.content))
        return response.content.decode("utf-8-sig", errors="replace")

    def _fetch_one(self, source: SourceConfig) -> str | FetchError:
        try:
            return self.fetch_raw(source)
        except FetchError as exc:
            logger.warning("Failed to load source %s: %s", source.id, exc)
            return exc

    def fetch_many(
        self,
        sources: Sequence[SourceConfig],
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> dict[str, str | FetchError]:
        """Fetch several sources concurrently; results keep configuration order.

        A failing source yields its ``FetchError`` instead of text and does not
        affect the others.
        """
        if not sources:
            return {}
        workers = max(1, min(max_workers, len(sources)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(functools.partial(self._fetch_one, source)) for source in sources]
            return {source.id: future.result() for source, future in zip(sources, futures)}

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "SheetSourceFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
