"""E2E tests for anime stream resolution through the Stremio router.

All real components are used except external I/O:
  - Real: TitleResolver, TorrentDiscoveryUseCase, DebridConversionUseCase,
          StreamPipelineUseCase, ReleaseMatcher, ReleaseRanker,
          stream_formatter, MemoryCacheAdapter, InFlightRegistry.
  - Mocked: Kitsu/Cinemeta/AniList ports, TorrentIndexPort,
            DebridProviderPort.
"""

from __future__ import annotations

from unittest.mock import AsyncMock
from urllib.parse import urlsplit

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from nyaarr.application.use_cases import (
    DebridConversionUseCase,
    StreamPipelineUseCase,
    TitleResolver,
    TorrentDiscoveryUseCase,
)
from nyaarr.domain.entities import TorrentRecord
from nyaarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from nyaarr.infrastructure.config import AppConfig
from nyaarr.infrastructure.matching.query_variants import build_query_variants
from nyaarr.infrastructure.matching.release_filters import ReleaseMatcher
from nyaarr.infrastructure.matching.release_ranker import ReleaseRanker
from nyaarr.infrastructure.matching.title_filters import (
    unique_titles,
    word_overlap_score,
)
from nyaarr.infrastructure.persistence import InFlightRegistry
from nyaarr.infrastructure.stremio import (
    format_candidate_title,
    format_placeholder_title,
)
from nyaarr.interfaces.api.stremio.router import router

_DIRECT = "https://download.real-debrid.com/d/XYZ/ep01.mkv"


def _record(name: str, hex_char: str, seeders: int) -> TorrentRecord:
    info_hash = hex_char * 40
    return TorrentRecord(
        name=name,
        magnet_uri=f"magnet:?xt=urn:btih:{info_hash}&dn=ep",
        info_hash=info_hash,
        seeders=seeders,
        size_label="1.4 GiB",
    )


_HD = _record("[SubsPlease] Kimetsu no Yaiba - 01 (1080p)", "a", 120)
_SD = _record("[SubsPlease] Kimetsu no Yaiba - 01 (480p)", "b", 900)
_WRONG_EP = _record("[SubsPlease] Kimetsu no Yaiba - 02 (1080p)", "c", 999)
_DEAD = _record("[Anon] Kimetsu no Yaiba - 01 (1080p)", "d", 0)


def _make_index(results: dict[str, list[TorrentRecord]]) -> AsyncMock:
    index = AsyncMock()

    async def _search(query: str) -> list[TorrentRecord]:
        return list(results.get(query, []))

    index.search.side_effect = _search
    return index


def _make_app(index: AsyncMock, provider: AsyncMock | None = None) -> FastAPI:
    config = AppConfig()
    cache = MemoryCacheAdapter()

    kitsu = AsyncMock()
    kitsu.get_anime.return_value = {
        "canonicalTitle": "Kimetsu no Yaiba",
        "titles": {"en_jp": "Kimetsu no Yaiba", "en": "Demon Slayer"},
        "startDate": "2019-04-06",
    }
    titles = TitleResolver(
        anime_metadata=kitsu,
        cinemeta=AsyncMock(),
        anime_search=AsyncMock(),
        cache=cache,
        select_titles_fn=unique_titles,
        score_fn=word_overlap_score,
    )
    discovery = TorrentDiscoveryUseCase(
        index=index,
        cache=cache,
        query_fn=build_query_variants,
        matcher=ReleaseMatcher(config.search.season_keywords),
        ranker=ReleaseRanker(config.search.preferred_groups),
    )

    if provider is None:
        provider = AsyncMock()
        provider.add_magnet.return_value = "TID"
        provider.get_info.return_value = {"files": [{"id": 1}], "links": ["https://rd/l"]}
        provider.unrestrict.return_value = _DIRECT
    conversion = DebridConversionUseCase(
        provider=provider,
        cache=cache,
        in_flight=InFlightRegistry(),
        poll_interval_seconds=0,
        first_attempt_timeout_seconds=2.0,
    )

    app = FastAPI()
    app.include_router(router)
    app.state.config = config
    app.state.stream_pipeline_uc = StreamPipelineUseCase(
        titles=titles,
        discovery=discovery,
        conversion=conversion,
        config=config.stremio,
        format_title_fn=format_candidate_title,
        format_placeholder_fn=format_placeholder_title,
        no_account_sentinel=config.debrid.no_account_sentinel,
    )
    return app


# ---------------------------------------------------------------------------
# Without a debrid account
# ---------------------------------------------------------------------------


class TestMagnetStreams:
    def test_ranked_magnets(self) -> None:
        index = _make_index({"Kimetsu no Yaiba 01": [_SD, _WRONG_EP, _DEAD, _HD]})
        client = TestClient(_make_app(index))

        resp = client.get("/nord/stream/series/kitsu:41370:1.json")

        assert resp.status_code == 200
        streams = resp.json()["streams"]
        assert [s["url"] for s in streams] == [_HD.magnet_uri, _SD.magnet_uri]
        assert all(s["name"] == "Nyaa Magnet" for s in streams)
        assert streams[0]["title"].startswith(
            "[SubsPlease] Kimetsu no Yaiba - 01 (1080p) [S1]\nSeeders: 120"
        )

    def test_fallback_title_searched(self) -> None:
        index = _make_index({"Demon Slayer 01": [_HD]})
        client = TestClient(_make_app(index))

        streams = client.get("/nord/stream/series/kitsu:41370:1.json").json()["streams"]

        assert [s["url"] for s in streams] == [_HD.magnet_uri]
        queried = {c.args[0] for c in index.search.await_args_list}
        assert {"Kimetsu no Yaiba 01", "Kimetsu no Yaiba 1"} <= queried
        assert {"Demon Slayer 01", "Demon Slayer 1"} <= queried

    def test_nothing_found_placeholder(self) -> None:
        client = TestClient(_make_app(_make_index({})))

        streams = client.get("/nord/stream/series/kitsu:41370:1.json").json()["streams"]

        assert len(streams) == 1
        assert streams[0]["name"] == "Nyaarr"
        assert streams[0]["title"] == "No torrents found on Nyaa"
        assert streams[0]["url"] == "https://nyaa.si"


# ---------------------------------------------------------------------------
# With a debrid account
# ---------------------------------------------------------------------------


class TestDebridStreams:
    @pytest.fixture()
    def client(self) -> TestClient:
        index = _make_index({"Kimetsu no Yaiba 01": [_HD]})
        return TestClient(_make_app(index), follow_redirects=False)

    def test_stream_then_click_through(self, client: TestClient) -> None:
        streams = client.get("/RDKEY/stream/series/kitsu:41370:1.json").json()["streams"]

        [stream] = streams
        assert stream["name"] == "Nyaa RealDebrid"
        assert stream["behaviorHints"] == {"bingeGroup": "nyaarr-rd"}

        # Follow the trigger URL the way a player would.
        parts = urlsplit(stream["url"])
        assert parts.path.startswith("/RDKEY/rd/")
        resp = client.get(stream["url"].replace(f"{parts.scheme}://{parts.netloc}", ""))

        assert resp.status_code == 302
        assert resp.headers["location"] == _DIRECT

    def test_failed_conversion(self) -> None:
        provider = AsyncMock()
        provider.add_magnet.return_value = "TID"
        provider.get_info.return_value = {"files": []}
        index = _make_index({"Kimetsu no Yaiba 01": [_HD]})
        client = TestClient(_make_app(index, provider), follow_redirects=False)

        url = client.get("/RDKEY/stream/series/kitsu:41370:1.json").json()["streams"][0]["url"]
        resp = client.get(url.replace("http://testserver", ""))

        assert resp.status_code == 500
        assert resp.text == "RealDebrid: Failed"
