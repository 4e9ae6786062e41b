"""Stream pipeline use case.

Stream request -> titles -> ranked torrents -> Stremio stream candidates.
Conversion happens lazily, only when a candidate URL is opened.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol
from urllib.parse import quote

import structlog

from nyaarr.domain.entities import (
    ConversionResult,
    ConversionStatus,
    MediaKind,
    PlaceholderReason,
    StreamCandidate,
    StreamRequest,
    TitleResolution,
    TorrentRecord,
    parse_media_id,
)

log = structlog.get_logger(__name__)

ACCOUNT_CANDIDATE_NAME = "Nyaa RealDebrid"
MAGNET_CANDIDATE_NAME = "Nyaa Magnet"
PLACEHOLDER_NAME = "Nyaarr"
BINGE_GROUP = "nyaarr-rd"

# ---------------------------------------------------------------------------
# Protocols: what the pipeline needs from its collaborators.
# ---------------------------------------------------------------------------


class _PipelineConfig(Protocol):
    max_streams: int
    min_seeders: int
    placeholder_url: str


class _TitleResolver(Protocol):
    async def resolve(
        self, media_kind: MediaKind, external_id: str
    ) -> TitleResolution: ...


class _TorrentDiscovery(Protocol):
    async def discover(
        self,
        titles: Sequence[str],
        episode: int | None = None,
        season: int | None = None,
    ) -> list[TorrentRecord]: ...


class _Conversion(Protocol):
    async def convert(self, magnet: str, account_key: str) -> ConversionResult: ...

    async def convert_with_deadline(
        self, magnet: str, account_key: str, timeout: float | None = None
    ) -> ConversionResult: ...


_TitleFormatFn = Callable[[TorrentRecord], str]
_PlaceholderFormatFn = Callable[[PlaceholderReason], str]


class StreamPipelineUseCase:
    """Entry points used by the Stremio router."""

    def __init__(
        self,
        *,
        titles: _TitleResolver,
        discovery: _TorrentDiscovery,
        conversion: _Conversion,
        config: _PipelineConfig,
        format_title_fn: _TitleFormatFn,
        format_placeholder_fn: _PlaceholderFormatFn,
        no_account_sentinel: str = "nord",
    ) -> None:
        self._titles = titles
        self._discovery = discovery
        self._conversion = conversion
        self._config = config
        self._format_title = format_title_fn
        self._format_placeholder = format_placeholder_fn
        self._sentinel = no_account_sentinel

    def has_account(self, account_key: str | None) -> bool:
        return bool(account_key) and account_key != self._sentinel

    async def resolve_stream(
        self, request: StreamRequest, base_url: str
    ) -> list[StreamCandidate]:
        """Always returns at least one candidate (a placeholder if needed)."""
        media_id = parse_media_id(request.media_kind, request.external_id)
        season = request.season if request.season is not None else media_id.season
        episode = request.episode if request.episode is not None else media_id.episode

        resolution = await self._titles.resolve(request.media_kind, request.external_id)
        if not resolution.names:
            log.info("stream_titles_unresolved", external_id=request.external_id)
            return [self._placeholder(PlaceholderReason.TITLE_NOT_RESOLVED)]

        records = await self._discovery.discover(
            list(resolution.names), episode=episode, season=season
        )
        records = [r for r in records if r.seeders >= self._config.min_seeders]
        records = records[: self._config.max_streams]
        if not records:
            log.info(
                "stream_no_torrents",
                external_id=request.external_id,
                names=list(resolution.names),
            )
            return [self._placeholder(PlaceholderReason.NO_TORRENTS)]

        with_account = self.has_account(request.account_key)
        candidates = [
            self._candidate(r, request.account_key, base_url, with_account)
            for r in records
        ]
        log.info(
            "stream_candidates_built",
            external_id=request.external_id,
            count=len(candidates),
            debrid=with_account,
        )
        return candidates

    async def convert_magnet(
        self, magnet: str, account_key: str, *, bounded: bool = True
    ) -> ConversionResult:
        """Playable URL for *magnet*; the magnet itself without an account."""
        if not self.has_account(account_key):
            return ConversionResult(ConversionStatus.READY, magnet)
        if bounded:
            return await self._conversion.convert_with_deadline(magnet, account_key)
        return await self._conversion.convert(magnet, account_key)

    def _candidate(
        self,
        record: TorrentRecord,
        account_key: str,
        base_url: str,
        with_account: bool,
    ) -> StreamCandidate:
        title = self._format_title(record)
        if not with_account:
            return StreamCandidate(
                name=MAGNET_CANDIDATE_NAME,
                title=title,
                url=record.magnet_uri,
                behavior_hints={"notWebReady": True},
            )

        trigger_url = (
            f"{base_url.rstrip('/')}/{quote(account_key, safe='')}"
            f"/rd/{quote(record.magnet_uri, safe='')}"
        )
        return StreamCandidate(
            name=ACCOUNT_CANDIDATE_NAME,
            title=title,
            url=trigger_url,
            behavior_hints={"bingeGroup": BINGE_GROUP},
        )

    def _placeholder(self, reason: PlaceholderReason) -> StreamCandidate:
        return StreamCandidate(
            name=PLACEHOLDER_NAME,
            title=self._format_placeholder(reason),
            url=self._config.placeholder_url,
            behavior_hints={"notWebReady": True},
            placeholder=reason,
        )
