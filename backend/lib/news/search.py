"""
Brave web search adapter.

Returns the week's fresh results for a query as SearchResult records.
Search is best-effort: any provider failure degrades to an empty list
after the retry policy has had its turn.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..core.errors import MalformedResponse, NewsPodcastError, ProviderUnavailable, RateLimited
from ..core.retry import RetryPolicy

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
MAX_RESULTS_CAP = 20
DESCRIPTION_LIMIT = 200


@dataclass(frozen=True)
class SearchResult:
    title: str
    description: str
    url: str
    published_hint: Optional[str] = None


def clamp_count(max_results: Any, cap: int = MAX_RESULTS_CAP) -> int:
    """Clamp a requested result count into 1..cap."""
    try:
        value = int(max_results)
    except (TypeError, ValueError):
        value = cap
    return min(max(1, value), cap)


def dedupe_by_url(results: Iterable[SearchResult]) -> List[SearchResult]:
    """Drop later results whose URL exactly matches an earlier one."""
    seen = set()
    unique = []
    for result in results:
        if result.url in seen:
            continue
        seen.add(result.url)
        unique.append(result)
    return unique


def format_search_results(results: List[SearchResult]) -> str:
    """
    Render results as a compact numbered list for the model.

    Args:
        results: Search results in rank order

    Returns:
        One line per result, or "No results found."
    """
    if not results:
        return "No results found."

    lines = []
    for idx, result in enumerate(results, 1):
        published = result.published_hint or "recent"
        lines.append(f'{idx}. "{result.title}" - {result.description} ({published})')
    return "\n".join(lines)


def parse_brave_results(data: Dict[str, Any]) -> List[SearchResult]:
    """Normalize the web.results array of a Brave response."""
    if not isinstance(data, dict):
        raise MalformedResponse("Brave response is not a JSON object")

    web = data.get("web") or {}
    if not isinstance(web, dict):
        raise MalformedResponse("Brave response field 'web' is not an object")
    items = web.get("results") or []
    if not isinstance(items, list):
        raise MalformedResponse("Brave response field 'web.results' is not a list")

    results = []
    for item in items:
        if not isinstance(item, dict):
            logger.debug(f"Skipping malformed Brave result: {item!r}")
            continue
        results.append(
            SearchResult(
                title=str(item.get("title") or ""),
                description=str(item.get("description") or "")[:DESCRIPTION_LIMIT],
                url=str(item.get("url") or ""),
                published_hint=item.get("age") or item.get("page_age")
            )
        )
    return results


class BraveSearchClient:
    """
    Async Brave Search client.

    Args:
        api_key: Brave subscription token
        retry_policy: Retry policy for 429 / 5xx / network failures
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.transport = transport

    async def _request(self, query: str, count: int) -> List[SearchResult]:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(
                    BRAVE_SEARCH_URL,
                    params={
                        "q": query,
                        "count": count,
                        "freshness": "pw",
                        "text_decorations": "false"
                    },
                    headers={
                        "Accept": "application/json",
                        "X-Subscription-Token": self.api_key
                    }
                )
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Brave search request failed: {e}")

        if response.status_code == 429:
            raise RateLimited("Brave search rate limit hit")
        if response.status_code >= 400:
            raise ProviderUnavailable(
                f"Brave search returned status {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Brave search returned invalid JSON: {e}")

        return parse_brave_results(data)

    async def search(self, query: str, max_results: int = 10) -> List[SearchResult]:
        """
        Search the web for recent pages.

        Args:
            query: Search query
            max_results: Maximum results (clamped to 1-20)

        Returns:
            Results in provider rank order; empty on any failure
        """
        count = clamp_count(max_results)
        try:
            results = await self.retry_policy.run(
                self._request, query, count, description="Brave search"
            )
        except NewsPodcastError as e:
            logger.error(f"❌ Brave search failed for '{query[:100]}': {e}")
            return []

        logger.info(f"Brave search returned {len(results)} result(s) for: {query[:100]}")
        return results[:count]
