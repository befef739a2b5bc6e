"""aiohttp adapter for the aggregator's search endpoint."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Mapping

import aiohttp
from yarl import URL

from reelmerge import logger
from reelmerge.__version__ import __version__
from reelmerge.catalog.normalizer import normalize_year
from reelmerge.catalog.protocols import SearchProvider
from reelmerge.catalog.resilience import expect_dict, results_payload
from reelmerge.catalog.types import DoubanId, RawHit
from reelmerge.config import ProviderConfig

DEFAULT_USER_AGENT = f"Reelmerge/{__version__}"
SEARCH_PATH = "/api/search"


class MalformedHitError(ValueError):
    """Raised when a provider row cannot be turned into a RawHit."""


def build_search_url(base_url: str, query: str) -> URL:
    """Search URL with the trimmed query percent-encoded in ``q``."""
    return URL(base_url.rstrip("/") + SEARCH_PATH).with_query({"q": query.strip()})


def _coerce_douban_id(value: Any) -> DoubanId | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value or None
    text = str(value).strip()
    if not text or text == "0":
        return None
    return int(text) if text.isdigit() else text


def map_hit(row: Mapping[str, Any]) -> RawHit:
    episodes = row.get("episodes")
    if not isinstance(episodes, list) or not episodes:
        raise MalformedHitError(
            f"Malformed search row: 'episodes' must be a non-empty list, got {episodes!r}"
        )
    source = row.get("source")
    content_id = row.get("id")
    if source in (None, "") or content_id in (None, ""):
        raise MalformedHitError(f"Malformed search row: missing source/id ({source!r}, {content_id!r})")

    return RawHit(
        source=str(source),
        id=str(content_id),
        title=str(row.get("title") or ""),
        year=normalize_year(row.get("year")),
        poster=str(row.get("poster") or ""),
        episodes=tuple(str(episode) for episode in episodes),
        source_name=str(row.get("source_name") or ""),
        type_name=str(row.get("type_name") or ""),
        douban_id=_coerce_douban_id(row.get("douban_id")),
    )


def parse_search_results(payload: object) -> list[RawHit]:
    """Validate a provider payload, skipping rows that are not usable hits."""
    rows = results_payload(payload, "Search")
    hits: list[RawHit] = []
    malformed = 0
    for idx, row in enumerate(rows):
        try:
            hits.append(map_hit(expect_dict(row, f"Search.results[{idx}]")))
        except ValueError as exc:
            malformed += 1
            logger.warning(str(exc))
    if malformed:
        logger.warning(f"Skipped {malformed} malformed search row(s); accepted {len(hits)}")
    return hits


class SearchServiceAdapter(SearchProvider):
    """Search provider backed by ``GET {base_url}/api/search?q=...``."""

    def __init__(self, provider: ProviderConfig, timeout: int | None = None):
        if not provider.base_url:
            raise ValueError("Search provider base_url is required.")

        self.provider = provider
        self.timeout = timeout if timeout is not None else provider.timeout
        self.base_url = provider.base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def search(self, query: str) -> Dict[str, Any]:
        url = build_search_url(self.base_url, query)
        log = logger.get_logger()
        log.api_request("GET", str(url), {"q": query.strip()})
        request_start = time.time()

        session = await self._ensure_session()
        async with session.get(url) as response:
            if response.status >= 400:
                text = await response.text()
                raise aiohttp.ClientResponseError(
                    request_info=response.request_info,
                    history=response.history,
                    status=response.status,
                    message=text,
                    headers=response.headers,
                )
            data = await response.json(content_type=None)
            elapsed_ms = (time.time() - request_start) * 1000
            log.api_response(response.status, expect_dict(data, "Search payload"), elapsed_ms)

        return {"results": parse_search_results(data)}

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                self._session = aiohttp.ClientSession(
                    headers={"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"},
                    timeout=timeout,
                )
            return self._session

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()


class PerRequestSearchProvider(SearchProvider):
    """Opens a fresh adapter for every search so each call can run under its own event loop."""

    def __init__(self, provider: ProviderConfig, adapter_factory=None) -> None:
        self.provider = provider
        self._adapter_factory = adapter_factory or SearchServiceAdapter

    async def search(self, query: str) -> Dict[str, Any]:
        adapter = self._adapter_factory(self.provider)
        try:
            return await adapter.search(query)
        finally:
            await adapter.close()
