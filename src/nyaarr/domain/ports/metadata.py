"""Ports for the metadata collaborators used by the title resolver."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from nyaarr.domain.entities.media import MediaKind


@runtime_checkable
class AnimeMetadataPort(Protocol):
    """Numeric-catalog namespace (Kitsu): id -> title variants + year."""

    async def get_anime(self, anime_id: str) -> dict[str, Any] | None:
        """Return the anime attributes (``titles``, ``canonicalTitle``,
        ``startDate``) or None when unavailable."""
        ...


@runtime_checkable
class CinemetaPort(Protocol):
    """IMDb namespace, step 1: id -> canonical English name."""

    async def get_name(self, media_kind: MediaKind, imdb_id: str) -> str | None: ...


@runtime_checkable
class AnimeSearchPort(Protocol):
    """IMDb namespace, step 2: fuzzy search by name (AniList)."""

    async def search(self, name: str) -> list[dict[str, Any]]:
        """Return candidate media records with ``format``, ``title``
        (romaji/english/native) and ``startDate`` keys."""
        ...
