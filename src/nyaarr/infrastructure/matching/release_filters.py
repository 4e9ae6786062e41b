"""Pure classification helpers over torrent release names.

Everything here works on strings only, so the discovery use case can
compose them freely and tests need no network.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from nyaarr.domain.entities import TorrentRecord

_BTIH_RE = re.compile(r"btih:([a-zA-Z0-9]+)", re.IGNORECASE)

_JUNK_RELEASE_RE = re.compile(
    r"\brecap\b|\bova\b|\boad\b|\bspecials?\b|\bpv\d*\b|\bpreview\b|\btrailer\b"
    r"|\bncop\b|\bnced\b|\bcreditless\b|mini anime",
    re.IGNORECASE,
)

_RANGE_RE = re.compile(r"(?<!\d)(\d{1,4})\s*[-~]\s*(\d{1,4})(?![\dpP])")
# "Season 2 - 07" and "S2 - 07" are an episode number, not the range 2..7.
_SEASON_BEFORE_RANGE_RE = re.compile(
    r"(?:\bS|\bSeason\s*|\bPart\s*)$", re.IGNORECASE
)
_BATCH_WORDS_RE = re.compile(r"\b(?:complete|batch)\b", re.IGNORECASE)

_SEASON_TAG_RE = re.compile(r"S\d{2}|Season\s*\d", re.IGNORECASE)

_SEASON_PATTERNS = (
    re.compile(r"\bS0*(\d{1,2})(?:E\d+|\b)", re.IGNORECASE),
    re.compile(r"\bSeason\s*(\d{1,2})(?!\d)", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\s*Season\b", re.IGNORECASE),
)


def extract_info_hash(magnet_uri: str) -> str | None:
    """Lower-case ``btih`` hash of *magnet_uri*, or None if absent."""
    match = _BTIH_RE.search(magnet_uri or "")
    return match.group(1).lower() if match else None


def deduplicate_by_info_hash(records: Iterable[TorrentRecord]) -> list[TorrentRecord]:
    """Keep the first record per info hash; records without a hash are dropped."""
    seen: set[str] = set()
    out: list[TorrentRecord] = []
    for record in records:
        info_hash = (record.info_hash or extract_info_hash(record.magnet_uri) or "").lower()
        if not info_hash or info_hash in seen:
            continue
        seen.add(info_hash)
        out.append(record)
    return out


def is_junk_release(name: str) -> bool:
    """Recaps, OVAs, specials, previews, creditless OP/ED and similar."""
    return _JUNK_RELEASE_RE.search(name) is not None


def _episode_re(episode: int) -> re.Pattern[str]:
    # A bare number (not glued to letters, digits, "Season", "Part" or "5.")
    # or one after an E/EP/Episode marker; only a "v2" suffix may follow.
    return re.compile(
        rf"(?:(?<![\dA-Za-z])(?<!\d\.)(?<!season )(?<!part )"
        rf"|(?<![A-Za-z])e(?:p(?:isode)?)?\s*)"
        rf"0*{episode}(?![\dA-UW-Za-uw-z])",
        re.IGNORECASE,
    )


def _range_contains(name: str, episode: int) -> bool:
    for match in _RANGE_RE.finditer(name):
        if _SEASON_BEFORE_RANGE_RE.search(name, 0, match.start()):
            continue
        start, end = int(match.group(1)), int(match.group(2))
        if start < end and start <= episode <= end:
            return True
    return False


def matches_episode(name: str, episode: int) -> bool:
    """True if *name* is episode *episode* or a batch that contains it."""
    if _episode_re(episode).search(name):
        return True
    if _range_contains(name, episode):
        return True
    return _BATCH_WORDS_RE.search(name) is not None


def has_season_tag(name: str) -> bool:
    """True if *name* carries an ``Sxx`` or ``Season N`` tag."""
    return _SEASON_TAG_RE.search(name) is not None


def detect_season(
    name: str, keywords: Mapping[str, int] | None = None
) -> int | None:
    """Season number declared by *name*, or None when unmarked.

    Explicit markers win over arc keywords.
    """
    for pattern in _SEASON_PATTERNS:
        match = pattern.search(name)
        if match:
            return int(match.group(1))

    if keywords:
        lowered = name.casefold()
        for keyword, season in keywords.items():
            if keyword.casefold() in lowered:
                return season
    return None


def matches_season(
    name: str, season: int, keywords: Mapping[str, int] | None = None
) -> bool:
    """Reject names whose declared season differs from *season*.

    Unmarked names count as season 1 and are never rejected.
    """
    declared = detect_season(name, keywords)
    if declared is None:
        return True
    return declared == season


class ReleaseMatcher:
    """Bundles the release filters with a configured arc keyword map."""

    def __init__(self, season_keywords: Mapping[str, int] | None = None) -> None:
        self._keywords = dict(season_keywords or {})

    def deduplicate(self, records: Iterable[TorrentRecord]) -> list[TorrentRecord]:
        return deduplicate_by_info_hash(records)

    def is_junk(self, name: str) -> bool:
        return is_junk_release(name)

    def matches_episode(self, name: str, episode: int) -> bool:
        return matches_episode(name, episode)

    def matches_season(self, name: str, season: int) -> bool:
        return matches_season(name, season, self._keywords)
