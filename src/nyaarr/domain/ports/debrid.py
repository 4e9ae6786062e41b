"""Port for debrid providers (server-side torrent -> HTTP link)."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DebridProviderPort(Protocol):
    """REST operations needed to turn a magnet into a download URL.

    Every method raises ``DebridError`` on HTTP or transport failure.
    """

    async def add_magnet(self, magnet: str, api_key: str) -> str | None:
        """Submit a magnet. Returns the provider-side torrent id."""
        ...

    async def get_info(self, torrent_id: str, api_key: str) -> dict[str, Any]:
        """Torrent status incl. ``files`` and ``links`` lists."""
        ...

    async def select_files(
        self, torrent_id: str, file_ids: list[int], api_key: str
    ) -> None: ...

    async def unrestrict(self, link: str, api_key: str) -> str | None:
        """Exchange a hoster link for a direct download URL."""
        ...
