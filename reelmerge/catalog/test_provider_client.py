from __future__ import annotations

import aiohttp
import pytest

from reelmerge.catalog import provider_client
from reelmerge.catalog.provider_client import (
    MalformedHitError,
    PerRequestSearchProvider,
    SearchServiceAdapter,
    build_search_url,
    map_hit,
    parse_search_results,
)
from reelmerge.config import ProviderConfig


def _row(**overrides) -> dict:
    row = {
        "id": "77",
        "source": "heimuer",
        "source_name": "Heimuer",
        "title": "Her",
        "year": "2013",
        "poster": "https://img.example/her.jpg",
        "episodes": ["https://cdn.example/her/1.m3u8"],
        "type_name": "Drama",
        "douban_id": 6722879,
    }
    row.update(overrides)
    return row


class _FakeResponseCtx:
    def __init__(self, *, status: int = 200, payload: object | None = None) -> None:
        self.status = status
        self._payload = payload if payload is not None else {"results": []}
        self.headers = {}
        self.request_info = None
        self.history = ()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        return self._payload

    async def text(self) -> str:
        return str(self._payload)


class _FakeSession:
    def __init__(self, response: _FakeResponseCtx) -> None:
        self.closed = False
        self.response = response
        self.urls: list[str] = []

    def get(self, url, *args, **kwargs):
        self.urls.append(str(url))
        return self.response

    async def close(self) -> None:
        self.closed = True


class _FakeLog:
    def __init__(self) -> None:
        self.requests: list[tuple] = []

    def api_request(self, *args, **_kwargs) -> None:
        self.requests.append(args)

    def api_response(self, *_args, **_kwargs) -> None:
        return None


def test_build_search_url_encodes_trimmed_query() -> None:
    url = build_search_url("https://search.example/", "  流浪 地球 ")

    assert url.path == "/api/search"
    assert url.query["q"] == "流浪 地球"
    assert "%E6%B5%81" in str(url)


def test_map_hit_copies_fields() -> None:
    hit = map_hit(_row())

    assert hit.storage_key == "heimuer+77"
    assert hit.title == "Her"
    assert hit.episodes == ("https://cdn.example/her/1.m3u8",)
    assert hit.douban_id == 6722879
    assert hit.type_name == "Drama"


@pytest.mark.parametrize(("raw", "expected"), [(0, None), ("0", None), ("", None), ("123", 123), (None, None)])
def test_map_hit_douban_id_coercion(raw, expected) -> None:
    assert map_hit(_row(douban_id=raw)).douban_id == expected


def test_map_hit_blank_year_becomes_unknown() -> None:
    assert map_hit(_row(year="")).year == "unknown"
    assert map_hit(_row(year=None)).year == "unknown"


@pytest.mark.parametrize("episodes", [[], None, "not-a-list"])
def test_map_hit_requires_episode_list(episodes) -> None:
    with pytest.raises(MalformedHitError):
        map_hit(_row(episodes=episodes))


def test_map_hit_requires_source_and_id() -> None:
    with pytest.raises(MalformedHitError, match="missing source/id"):
        map_hit(_row(source=""))


def test_parse_search_results_skips_malformed_rows(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[str] = []
    monkeypatch.setattr(provider_client.logger, "warning", warnings.append)

    hits = parse_search_results({"results": [_row(), _row(id="78", episodes=[]), "garbage"]})

    assert [hit.id for hit in hits] == ["77"]
    assert any("Skipped 2 malformed" in line for line in warnings)


def test_parse_search_results_handles_missing_results() -> None:
    assert parse_search_results({}) == []
    assert parse_search_results({"results": None}) == []


def test_parse_search_results_raises_on_error_payload() -> None:
    with pytest.raises(ValueError, match="error without results"):
        parse_search_results({"error": "upstream down"})


def test_adapter_requires_base_url() -> None:
    with pytest.raises(ValueError, match="base_url"):
        SearchServiceAdapter(ProviderConfig())


@pytest.mark.asyncio
async def test_adapter_search_returns_mapped_hits(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter = SearchServiceAdapter(ProviderConfig(base_url="https://search.example"))
    session = _FakeSession(_FakeResponseCtx(payload={"results": [_row()]}))
    fake_log = _FakeLog()
    monkeypatch.setattr(provider_client.logger, "get_logger", lambda: fake_log)

    async def _fake_ensure_session():
        return session

    monkeypatch.setattr(adapter, "_ensure_session", _fake_ensure_session)

    payload = await adapter.search(" Her ")

    assert [hit.id for hit in payload["results"]] == ["77"]
    assert session.urls == ["https://search.example/api/search?q=Her"]
    assert fake_log.requests[0][0] == "GET"


@pytest.mark.asyncio
async def test_adapter_search_raises_on_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter = SearchServiceAdapter(ProviderConfig(base_url="https://search.example"))
    session = _FakeSession(_FakeResponseCtx(status=502, payload={"error": "bad gateway"}))
    monkeypatch.setattr(provider_client.logger, "get_logger", lambda: _FakeLog())

    async def _fake_ensure_session():
        return session

    monkeypatch.setattr(adapter, "_ensure_session", _fake_ensure_session)

    with pytest.raises(aiohttp.ClientResponseError):
        await adapter.search("Her")


@pytest.mark.asyncio
async def test_per_request_provider_closes_adapter_even_on_failure() -> None:
    created: list["_FakeAdapter"] = []

    class _FakeAdapter:
        def __init__(self, provider: ProviderConfig) -> None:
            self.provider = provider
            self.closed = False
            created.append(self)

        async def search(self, query: str) -> dict:
            if query == "boom":
                raise RuntimeError("boom")
            return {"results": []}

        async def close(self) -> None:
            self.closed = True

    provider = PerRequestSearchProvider(ProviderConfig(base_url="https://search.example"), _FakeAdapter)

    assert await provider.search("Her") == {"results": []}
    with pytest.raises(RuntimeError):
        await provider.search("boom")

    assert len(created) == 2
    assert all(adapter.closed for adapter in created)
