"""
News gathering: web search, feeds, headline curation and the headline cache.
"""

from .cache import DEFAULT_HEADLINES, HeadlineCache, HeadlineCacheFile, HeadlineSnapshot, HeadlineView
from .feeds import fetch_feed_items
from .headlines import HeadlineCurator, parse_headlines
from .search import BraveSearchClient, SearchResult, format_search_results
from .tools import NewsToolbox

__all__ = [
    'DEFAULT_HEADLINES',
    'HeadlineCache',
    'HeadlineCacheFile',
    'HeadlineSnapshot',
    'HeadlineView',
    'fetch_feed_items',
    'HeadlineCurator',
    'parse_headlines',
    'BraveSearchClient',
    'SearchResult',
    'format_search_results',
    'NewsToolbox',
]
