"""Search query generation from a single title."""

from __future__ import annotations

import re

_SEASON_MARKERS = (
    re.compile(r"\bSeason\s*\d+\b", re.IGNORECASE),
    re.compile(r"\bPart\s*\d+\b", re.IGNORECASE),
    re.compile(r"\b\d+(?:st|nd|rd|th)\s+Season\b", re.IGNORECASE),
    re.compile(r"\([^)]*\)"),
)
_TRUNCATE_RE = re.compile(r"\s*(?::|\s-\s|-).*$")
_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SPACES_RE = re.compile(r"\s+")

MIN_QUERY_LENGTH = 3


def _squash(text: str) -> str:
    return _SPACES_RE.sub(" ", text).strip()


def _strip_season_markers(title: str) -> str:
    out = title
    for pattern in _SEASON_MARKERS:
        out = pattern.sub(" ", out)
    return _squash(out.replace(":", " "))


def _truncate(title: str) -> str:
    return _squash(_TRUNCATE_RE.sub("", title))


def _strip_punctuation(title: str) -> str:
    return _squash(_PUNCT_RE.sub(" ", title))


def base_variants(title: str) -> list[str]:
    """Title-only variants, verbatim first, without episode numbers.

    The verbatim title is always kept, however short; derived variants
    shorter than ``MIN_QUERY_LENGTH`` are dropped.
    """
    verbatim = _squash(title)
    if not verbatim:
        return []
    derived = [
        _strip_season_markers(verbatim),
        _truncate(verbatim),
        _strip_punctuation(verbatim),
        _strip_punctuation(_strip_season_markers(verbatim)),
    ]

    seen = {verbatim.casefold()}
    out = [verbatim]
    for candidate in derived:
        if len(candidate) < MIN_QUERY_LENGTH:
            continue
        key = candidate.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(candidate)
    return out


def build_query_variants(title: str, episode: int | None = None) -> list[str]:
    """Build the ordered, de-duplicated search queries for *title*.

    Without an episode the title-only variants are returned. With an
    episode every base variant expands to ``"<variant> 07"`` followed by
    ``"<variant> 7"``; for episodes >= 10 both forms are identical and
    collapse into one query.

    >>> build_query_variants("Kimetsu no Yaiba", 1)
    ['Kimetsu no Yaiba 01', 'Kimetsu no Yaiba 1']
    """
    bases = base_variants(title)
    if episode is None:
        return bases

    out: list[str] = []
    seen: set[str] = set()
    for base in bases:
        for query in (f"{base} {episode:02d}", f"{base} {episode}"):
            if query in seen:
                continue
            seen.add(query)
            out.append(query)
    return out
