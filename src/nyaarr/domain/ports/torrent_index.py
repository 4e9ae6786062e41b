"""Port for the public torrent index."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from nyaarr.domain.entities.media import TorrentRecord


@runtime_checkable
class TorrentIndexPort(Protocol):
    """Query string -> torrent listings.

    Implementations return an empty list when the index is unreachable.
    """

    async def search(self, query: str) -> list[TorrentRecord]: ...
