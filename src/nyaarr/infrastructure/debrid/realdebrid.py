"""RealDebrid REST API client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from nyaarr.domain.entities.errors import DebridError
from nyaarr.infrastructure.logging.setup import mask_secret

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.real-debrid.com/rest/1.0"


class RealDebridClient:
    """Implements ``DebridProviderPort``.

    Each call authenticates with the caller's API key (Bearer token) and
    raises ``DebridError`` naming the failed step on any HTTP, transport
    or payload problem.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
        add_timeout_seconds: float = 12.0,
        call_timeout_seconds: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._add_timeout = add_timeout_seconds
        self._call_timeout = call_timeout_seconds

    @staticmethod
    def _headers(api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    async def _request(
        self,
        step: str,
        method: str,
        path: str,
        api_key: str,
        *,
        data: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.request(
                method,
                url,
                data=data,
                headers=self._headers(api_key),
                timeout=timeout or self._call_timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            log.warning(
                "realdebrid_http_error",
                step=step,
                status=exc.response.status_code,
                api_key=mask_secret(api_key),
            )
            raise DebridError(step, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            log.warning(
                "realdebrid_network_error",
                step=step,
                error=type(exc).__name__,
                api_key=mask_secret(api_key),
            )
            raise DebridError(step, type(exc).__name__) from exc

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise DebridError(step, "invalid JSON") from exc

    async def add_magnet(self, magnet: str, api_key: str) -> str | None:
        payload = await self._request(
            "add_magnet",
            "POST",
            "/torrents/addMagnet",
            api_key,
            data={"magnet": magnet},
            timeout=self._add_timeout,
        )
        torrent_id = payload.get("id") if isinstance(payload, dict) else None
        return str(torrent_id) if torrent_id else None

    async def get_info(self, torrent_id: str, api_key: str) -> dict[str, Any]:
        payload = await self._request(
            "get_info", "GET", f"/torrents/info/{torrent_id}", api_key
        )
        if not isinstance(payload, dict):
            raise DebridError("get_info", "unexpected payload")
        return payload

    async def select_files(
        self, torrent_id: str, file_ids: list[int], api_key: str
    ) -> None:
        await self._request(
            "select_files",
            "POST",
            f"/torrents/selectFiles/{torrent_id}",
            api_key,
            data={"files": ",".join(str(i) for i in file_ids)},
        )

    async def unrestrict(self, link: str, api_key: str) -> str | None:
        payload = await self._request(
            "unrestrict",
            "POST",
            "/unrestrict/link",
            api_key,
            data={"link": link},
        )
        if not isinstance(payload, dict):
            return None
        return payload.get("download") or None
