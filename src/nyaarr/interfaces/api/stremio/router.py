"""Stremio addon API endpoints (manifest, stream, debrid click-through)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.responses import Response

from nyaarr.domain.entities import ConversionStatus, StreamCandidate, StreamRequest
from nyaarr.infrastructure.config import AppConfig
from nyaarr.infrastructure.logging.setup import mask_secret
from nyaarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

_MEDIA_KINDS = ("movie", "series")


def _build_manifest(config: AppConfig) -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    stremio = config.stremio
    return {
        "id": stremio.addon_id,
        "version": stremio.addon_version,
        "name": stremio.addon_name,
        "description": "Anime torrents from Nyaa, optionally via RealDebrid",
        "resources": ["stream"],
        "types": ["series", "movie"],
        "catalogs": [],
        "idPrefixes": ["kitsu:", "tt"],
        "behaviorHints": {
            "adult": False,
            "configurable": False,
        },
    }


def _format_candidate(candidate: StreamCandidate) -> dict[str, Any]:
    """Convert a StreamCandidate to Stremio JSON format."""
    out: dict[str, Any] = {
        "name": candidate.name,
        "title": candidate.title,
        "url": candidate.url,
    }
    if candidate.behavior_hints:
        out["behaviorHints"] = dict(candidate.behavior_hints)
    return out


def _public_base_url(request: Request, config: AppConfig) -> str:
    if config.stremio.base_url:
        return config.stremio.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


@router.get("/{account_key}/manifest.json")
async def stremio_manifest(request: Request, account_key: str) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=_build_manifest(state.config), headers=_CORS_HEADERS)


@router.get("/{account_key}/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    account_key: str,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve ranked torrent streams for a movie or episode.

    Never fails: unexpected errors are logged and answered with an empty
    stream list.
    """
    state = cast(AppState, request.app.state)

    if content_type not in _MEDIA_KINDS:
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    stream_request = StreamRequest(
        media_kind=content_type,  # type: ignore[arg-type]
        external_id=stream_id,
        account_key=account_key,
    )
    log.info(
        "stremio_stream_request",
        content_type=content_type,
        stream_id=stream_id,
        account=mask_secret(account_key),
    )

    try:
        candidates = await state.stream_pipeline_uc.resolve_stream(
            stream_request, _public_base_url(request, state.config)
        )
    except Exception:
        log.exception("stremio_stream_failed", stream_id=stream_id)
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    return JSONResponse(
        content={"streams": [_format_candidate(c) for c in candidates]},
        headers=_CORS_HEADERS,
    )


@router.get("/{account_key}/rd/{magnet:path}")
async def stremio_debrid_play(request: Request, account_key: str, magnet: str) -> Response:
    """Click-through conversion: redirect to the playable URL.

    A conversion that outlives the first-attempt window keeps running in
    the background; the player gets a placeholder (or 202) and the next
    click is served from cache.
    """
    state = cast(AppState, request.app.state)

    try:
        result = await state.stream_pipeline_uc.convert_magnet(magnet, account_key)
    except Exception:
        log.exception("stremio_debrid_play_failed", account=mask_secret(account_key))
        return PlainTextResponse(
            "RealDebrid: Failed", status_code=500, headers=_CORS_HEADERS
        )

    if result.status is ConversionStatus.READY and result.url:
        return RedirectResponse(result.url, status_code=302, headers=_CORS_HEADERS)

    if result.status is ConversionStatus.PENDING:
        placeholder = state.config.debrid.pending_placeholder_url
        if placeholder:
            return RedirectResponse(placeholder, status_code=302, headers=_CORS_HEADERS)
        return PlainTextResponse(
            "RealDebrid: Still converting, retry in a few seconds",
            status_code=202,
            headers=_CORS_HEADERS,
        )

    return PlainTextResponse("RealDebrid: Failed", status_code=500, headers=_CORS_HEADERS)
