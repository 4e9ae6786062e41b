"""Deterministic ordering of torrent releases."""

from __future__ import annotations

import re
from typing import Sequence

import structlog

from nyaarr.domain.entities import TorrentRecord

log = structlog.get_logger(__name__)

_1080P_RE = re.compile(r"1080p", re.IGNORECASE)


class ReleaseRanker:
    """Sort releases by resolution tier, group preference and seeders.

    Ties after all three keys keep name order so output never depends on
    network arrival order.
    """

    def __init__(self, preferred_groups: Sequence[str] = ()) -> None:
        self._groups = [g.casefold() for g in preferred_groups if g]

    def group_priority(self, name: str) -> int:
        lowered = name.casefold()
        for idx, group in enumerate(self._groups):
            if group in lowered:
                return idx
        return len(self._groups)

    def sort_key(self, record: TorrentRecord) -> tuple[int, int, int, str]:
        resolution_tier = 0 if _1080P_RE.search(record.name) else 1
        return (
            resolution_tier,
            self.group_priority(record.name),
            -record.seeders,
            record.name,
        )

    def rank(self, records: Sequence[TorrentRecord]) -> list[TorrentRecord]:
        ranked = sorted(records, key=self.sort_key)
        log.debug("releases_ranked", count=len(ranked))
        return ranked
