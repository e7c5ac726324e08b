"""
Search Service
Looks up torrents through a tracker's RSS search feed.
"""

import re
from typing import List, Optional
from urllib.parse import quote_plus

import feedparser
import httpx

from harvest.config import logger
from harvest.exceptions import SearchError
from harvest.models import MAX_RESULTS, SearchResult

QUERY_PLACEHOLDER = "{query}"

SIZE_UNITS = {
    "b": 1,
    "kb": 1000, "kib": 1024,
    "mb": 1000 ** 2, "mib": 1024 ** 2,
    "gb": 1000 ** 3, "gib": 1024 ** 3,
    "tb": 1000 ** 4, "tib": 1024 ** 4,
}
SIZE_PATTERN = re.compile(r"^\s*([\d.,]+)\s*([a-zA-Z]*)\s*$")


def parse_size(value) -> int:
    """Parse sizes like 1048576 or '1.5 GiB' into bytes. Unparseable sizes are 0."""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    match = SIZE_PATTERN.match(str(value))
    if not match:
        return 0
    number, unit = match.groups()
    multiplier = SIZE_UNITS.get(unit.lower() or "b")
    if multiplier is None:
        return 0
    try:
        return int(float(number.replace(",", "")) * multiplier)
    except ValueError:
        return 0


def _int_or_zero(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _magnet_for(entry) -> Optional[str]:
    magnet = entry.get("torrent_magneturi")
    if magnet:
        return magnet

    link = entry.get("link", "")
    if link.startswith("magnet:"):
        return link

    for enclosure in entry.get("enclosures", []):
        href = enclosure.get("href", "")
        if href.startswith("magnet:"):
            return href

    info_hash = entry.get("nyaa_infohash")
    if info_hash:
        return f"magnet:?xt=urn:btih:{info_hash}&dn={quote_plus(entry.get('title', ''))}"
    return None


def _size_for(entry) -> int:
    for key in ("torrent_contentlength", "nyaa_size", "size"):
        if entry.get(key):
            return parse_size(entry.get(key))
    for enclosure in entry.get("enclosures", []):
        if enclosure.get("length"):
            return parse_size(enclosure.get("length"))
    return 0


def _seeders_for(entry) -> int:
    for key in ("torrent_seeds", "nyaa_seeders", "seeders"):
        if entry.get(key) is not None:
            return _int_or_zero(entry.get(key))
    return 0


def entries_to_results(entries, limit: int = MAX_RESULTS) -> List[SearchResult]:
    """Convert feedparser entries into search results, skipping entries without a magnet."""
    results = []
    for entry in entries:
        magnet = _magnet_for(entry)
        if not magnet:
            logger.debug(f"Skipping search entry without magnet: {entry.get('title', 'Unknown')}")
            continue
        results.append(SearchResult(
            name=entry.get("title", "Unknown"),
            size=_size_for(entry),
            seeders=_seeders_for(entry),
            magnet_uri=magnet,
        ))
        if len(results) >= limit:
            break
    return results


class TorrentSearch:
    """Searches a tracker RSS feed. The URL template must contain `{query}`."""

    def __init__(self, url_template: str, limit: int = MAX_RESULTS, client: Optional[httpx.AsyncClient] = None):
        self.url_template = url_template
        self.limit = min(limit, MAX_RESULTS)
        self._client = client or httpx.AsyncClient(timeout=15.0, follow_redirects=True)

    async def close(self) -> None:
        await self._client.aclose()

    async def search(self, query: str) -> List[SearchResult]:
        # Other braces in the template (e.g. a literal {0}) are left alone
        url = self.url_template.replace(QUERY_PLACEHOLDER, quote_plus(query.strip().lower()))
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SearchError(f"Error fetching search feed: {e}") from e

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise SearchError(f"Failed to parse search feed: {feed.get('bozo_exception')}")

        results = entries_to_results(feed.entries, self.limit)
        logger.info(f"Search '{query}' returned {len(results)} result(s)")
        return results
