"""nyaa.si search adapter (HTML listing, parsed with BeautifulSoup)."""

from __future__ import annotations

import httpx
import structlog
from bs4 import BeautifulSoup, Tag

from nyaarr.domain.entities import TorrentRecord
from nyaarr.infrastructure.matching.release_filters import extract_info_hash

log = structlog.get_logger(__name__)

_BASE_URL = "https://nyaa.si"

# Column order of ``table.torrent-list``:
# category | name | links | size | date | seeders | leechers | downloads
_COL_NAME = 1
_COL_LINKS = 2
_COL_SIZE = 3
_COL_SEEDERS = 5


def _cell_text(cells: list[Tag], idx: int) -> str:
    if idx >= len(cells):
        return ""
    return cells[idx].get_text(strip=True)


def _parse_int(text: str) -> int:
    try:
        return int(text.replace(",", ""))
    except ValueError:
        return 0


def _row_name(cell: Tag) -> str:
    # The name cell may start with a comments link; the title link is last.
    links = [
        a
        for a in cell.select('a[href^="/view/"]')
        if "comments" not in (a.get("class") or [])
    ]
    if not links:
        return ""
    link = links[-1]
    return str(link.get("title") or link.get_text(strip=True)).strip()


def parse_search_page(html: str) -> list[TorrentRecord]:
    """Parse one result page into torrent records.

    Rows without a name or a magnet carrying a ``btih`` hash are skipped.
    """
    soup = BeautifulSoup(html, "lxml")
    records: list[TorrentRecord] = []

    for row in soup.select("table.torrent-list tbody tr"):
        cells = row.find_all("td")
        if len(cells) <= _COL_SEEDERS:
            continue

        name = _row_name(cells[_COL_NAME])
        magnet_link = cells[_COL_LINKS].select_one('a[href^="magnet:"]')
        magnet = str(magnet_link.get("href")) if magnet_link else ""
        info_hash = extract_info_hash(magnet)
        if not name or not info_hash:
            continue

        records.append(
            TorrentRecord(
                name=name,
                magnet_uri=magnet,
                info_hash=info_hash,
                seeders=_parse_int(_cell_text(cells, _COL_SEEDERS)),
                size_label=_cell_text(cells, _COL_SIZE),
            )
        )
    return records


class NyaaClient:
    """Implements ``TorrentIndexPort`` against the nyaa.si web listing.

    Results are requested sorted by seeders; a short page ends the
    pagination early. Transport and HTTP errors end the search with what
    was collected so far.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
        category: str = "1_2",
        filter_: int = 0,
        max_pages: int = 1,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._category = category
        self._filter = filter_
        self._max_pages = max_pages
        self._timeout = timeout_seconds

    def _params(self, query: str, page: int) -> dict[str, str | int]:
        params: dict[str, str | int] = {
            "f": self._filter,
            "c": self._category,
            "q": query,
            "s": "seeders",
            "o": "desc",
        }
        if page > 1:
            params["p"] = page
        return params

    async def search(self, query: str) -> list[TorrentRecord]:
        results: list[TorrentRecord] = []
        for page in range(1, self._max_pages + 1):
            try:
                resp = await self._http.get(
                    f"{self._base_url}/",
                    params=self._params(query, page),
                    timeout=self._timeout,
                )
                resp.raise_for_status()
            except httpx.HTTPError:
                log.warning("nyaa_request_failed", query=query, page=page, exc_info=True)
                break

            page_records = parse_search_page(resp.text)
            results.extend(page_records)
            if not page_records:
                break

        log.debug("nyaa_search_done", query=query, count=len(results))
        return results
