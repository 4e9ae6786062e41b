"""Domain entities for anime stream resolution.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

MediaKind = Literal["movie", "series"]
MediaNamespace = Literal["kitsu", "imdb", "unknown"]


@dataclass(frozen=True)
class MediaId:
    """Parsed Stremio media identifier.

    ``kitsu:12345:5`` -> namespace kitsu, base id ``12345``, S1E5.
    ``tt1234567:2:5`` -> namespace imdb, base id ``tt1234567``, S2E5.
    """

    namespace: MediaNamespace
    base_id: str
    season: int | None = None
    episode: int | None = None


@dataclass(frozen=True)
class TitleResolution:
    """Candidate search titles for a media item, most authoritative first."""

    names: tuple[str, ...] = ()
    year: int | None = None


@dataclass(frozen=True)
class TorrentRecord:
    """A single torrent listing from the torrent index."""

    name: str
    magnet_uri: str
    info_hash: str  # lower-case hex, derived from magnet_uri
    seeders: int = 0
    size_label: str = ""


class ConversionStatus(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a magnet -> playable URL conversion attempt."""

    status: ConversionStatus
    url: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status is ConversionStatus.READY


class PlaceholderReason(Enum):
    TITLE_NOT_RESOLVED = "title_not_resolved"
    NO_TORRENTS = "no_torrents"


@dataclass(frozen=True)
class StreamCandidate:
    """Stremio protocol Stream object (JSON-serializable)."""

    name: str  # Bold label in Stremio UI, e.g. "Nyaa RealDebrid"
    title: str  # Multi-line description below the name
    url: str  # Magnet URI, conversion-trigger URL or placeholder page
    behavior_hints: dict[str, Any] = field(default_factory=dict)
    placeholder: PlaceholderReason | None = None


@dataclass(frozen=True)
class StreamRequest:
    """Parsed stream request as handed to the pipeline."""

    media_kind: MediaKind
    external_id: str
    season: int | None = None
    episode: int | None = None
    account_key: str = ""


def _to_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


def parse_media_id(media_kind: MediaKind, external_id: str) -> MediaId:
    """Split a Stremio id into namespace, base id and season/episode.

    Series ids without a usable suffix default to season 1, episode 1.
    Movies never carry season/episode.
    """
    parts = external_id.split(":")

    if external_id.startswith("kitsu:"):
        base_id = parts[1] if len(parts) > 1 else ""
        if media_kind != "series":
            return MediaId("kitsu", base_id)
        episode_part = parts[2] if len(parts) > 2 else None
        return MediaId("kitsu", base_id, season=1, episode=_to_int(episode_part, 1))

    namespace: MediaNamespace = "imdb" if external_id.startswith("tt") else "unknown"
    base_id = parts[0]
    if media_kind != "series":
        return MediaId(namespace, base_id)

    if len(parts) >= 3:
        return MediaId(
            namespace,
            base_id,
            season=_to_int(parts[1], 1),
            episode=_to_int(parts[2], 1),
        )
    episode_part = parts[1] if len(parts) > 1 else None
    return MediaId(namespace, base_id, season=1, episode=_to_int(episode_part, 1))
