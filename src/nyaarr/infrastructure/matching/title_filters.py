"""Heuristics for picking usable search titles from metadata names."""

from __future__ import annotations

import re

# ASCII plus Latin-1 Supplement / Latin Extended-A/B / Latin Extended Additional.
_LATIN_RE = re.compile(r"^[\x00-\x7F\u00C0-\u024F\u1E00-\u1EFF\s\-:!?.'&]+$")

_JUNK_TITLE_RE = re.compile(
    r"mini anime|recap|\bova\b|special|\bpv\b|promo|preview|part \d|●|\?\?",
    re.IGNORECASE,
)

_WORD_RE = re.compile(r"[a-z0-9]+")


def is_latin_script(title: str) -> bool:
    """True if *title* is written in Latin script (no CJK, Cyrillic, ...)."""
    return bool(title) and _LATIN_RE.match(title) is not None


def is_junk_title(title: str) -> bool:
    """True for recap/special/promo style names that make poor search queries."""
    return _JUNK_TITLE_RE.search(title) is not None


def is_usable_title(title: str | None) -> bool:
    if not title or not title.strip():
        return False
    return is_latin_script(title) and not is_junk_title(title)


def _significant_words(text: str) -> list[str]:
    return [w for w in _WORD_RE.findall(text.lower()) if len(w) > 2]


def word_overlap_score(query: str, candidate: str) -> float:
    """Fraction of the query's significant words found in *candidate*.

    Words of two characters or fewer are ignored. Returns 0.0 when the
    query has no significant words.
    """
    query_words = _significant_words(query)
    if not query_words:
        return 0.0
    candidate_words = set(_significant_words(candidate))
    matches = sum(1 for w in query_words if w in candidate_words)
    return matches / len(query_words)


def unique_titles(titles: list[str | None]) -> list[str]:
    """Keep usable titles in order, dropping case-insensitive duplicates."""
    seen: set[str] = set()
    out: list[str] = []
    for title in titles:
        if title is None or not is_usable_title(title):
            continue
        cleaned = title.strip()
        key = cleaned.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(cleaned)
    return out
