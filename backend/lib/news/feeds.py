"""
RSS/Atom feed source.

Parses configured feeds with feedparser off the event loop and normalizes
entries into SearchResult records.
"""

import asyncio
import logging
import re
from typing import Any, List, Optional, Sequence

import feedparser

from .search import DESCRIPTION_LIMIT, SearchResult, dedupe_by_url

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def _entry_url(entry: Any) -> Optional[str]:
    link = entry.get("link")
    if link:
        return link
    for li in entry.get("links") or []:
        if li.get("rel") == "alternate" and li.get("href"):
            return li["href"]
    ident = entry.get("id")
    if ident and str(ident).startswith(("http://", "https://")):
        return ident
    return None


def _entry_to_result(entry: Any) -> Optional[SearchResult]:
    title = (entry.get("title") or "").strip()
    url = _entry_url(entry)
    if not title or not url:
        return None

    summary = _TAG_RE.sub("", entry.get("summary") or "")
    summary = " ".join(summary.split())
    return SearchResult(
        title=title,
        description=summary[:DESCRIPTION_LIMIT],
        url=url,
        published_hint=entry.get("published") or entry.get("updated")
    )


def parse_feed(url: str) -> List[SearchResult]:
    """Parse a single feed synchronously."""
    feed = feedparser.parse(url)
    if feed.get("bozo") and not feed.entries:
        raise ValueError(f"could not parse feed: {feed.get('bozo_exception')}")

    results = []
    for entry in feed.entries:
        result = _entry_to_result(entry)
        if result is None:
            logger.debug(f"Dropping feed entry without title/link from {url}")
            continue
        results.append(result)
    return results


async def fetch_feed_items(
    urls: Sequence[str],
    limit: int = 20,
    keyword: Optional[str] = None
) -> List[SearchResult]:
    """
    Collect recent items from several feeds.

    Args:
        urls: Feed URLs, read in order
        limit: Maximum items to return
        keyword: Optional case-insensitive filter on title and description

    Returns:
        Deduplicated items, feed order preserved
    """
    items: List[SearchResult] = []
    for url in urls:
        try:
            items.extend(await asyncio.to_thread(parse_feed, url))
        except Exception as e:
            logger.warning(f"⚠️ Skipping feed {url}: {e}")

    if keyword:
        needle = keyword.lower()
        items = [
            item for item in items
            if needle in item.title.lower() or needle in item.description.lower()
        ]

    items = dedupe_by_url(items)
    logger.info(f"Feed source returned {min(len(items), limit)} item(s) from {len(urls)} feed(s)")
    return items[:limit]
