"""Human-readable stream titles for the Stremio stream list."""

from __future__ import annotations

from nyaarr.domain.entities import PlaceholderReason, TorrentRecord
from nyaarr.infrastructure.matching.release_filters import has_season_tag

_PLACEHOLDER_TITLES: dict[PlaceholderReason, str] = {
    PlaceholderReason.TITLE_NOT_RESOLVED: "Could not resolve the anime title",
    PlaceholderReason.NO_TORRENTS: "No torrents found on Nyaa",
}


def format_candidate_title(record: TorrentRecord) -> str:
    """``<name>[ [S1]]`` plus a seeders/size line.

    Releases without an ``Sxx``/``Season N`` tag are marked ``[S1]``.
    """
    season_mark = "" if has_season_tag(record.name) else " [S1]"
    return (
        f"{record.name}{season_mark}\n"
        f"Seeders: {record.seeders} | Size: {record.size_label or '?'}"
    )


def format_placeholder_title(reason: PlaceholderReason) -> str:
    return _PLACEHOLDER_TITLES[reason]
