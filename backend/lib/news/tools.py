"""
News research tools for the agents.

All tools that the headline curator and the script writer can use via
Gemini function calling.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from google.genai import types

from .feeds import fetch_feed_items
from .search import BraveSearchClient, clamp_count, format_search_results

logger = logging.getLogger(__name__)


# ==================== Tool Definitions ====================

def get_tool_definitions(feeds_enabled: bool = False) -> List[types.FunctionDeclaration]:
    """
    Get list of tool definitions for Gemini function calling.

    Args:
        feeds_enabled: Register the feed browsing tool (needs NEWS_FEEDS)

    Returns:
        List of FunctionDeclaration objects
    """
    tools = [
        types.FunctionDeclaration(
            name="search_news",
            description="Search the web for news from the past week. Returns titles, short descriptions and how long ago each story was published.",
            parameters=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "query": types.Schema(
                        type=types.Type.STRING,
                        description="Search query, e.g. 'OpenAI announcement' or 'AI regulation news'"
                    ),
                    "count": types.Schema(
                        type=types.Type.INTEGER,
                        description="Maximum number of results to return (1-20)"
                    )
                },
                required=["query"]
            )
        )
    ]

    if feeds_enabled:
        tools.append(
            types.FunctionDeclaration(
                name="browse_news_feeds",
                description="List the latest items from curated tech news feeds, optionally filtered by a keyword.",
                parameters=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "keyword": types.Schema(
                            type=types.Type.STRING,
                            description="Optional keyword to filter items by"
                        ),
                        "count": types.Schema(
                            type=types.Type.INTEGER,
                            description="Maximum number of items to return (1-20)"
                        )
                    }
                )
            )
        )

    return tools


# ==================== Tool Executor ====================

class NewsToolbox:
    """
    Tool declarations plus executor bound to the configured sources.

    Args:
        search_client: Brave search client
        feed_urls: RSS/Atom feed URLs; the feed tool is registered only when non-empty
        default_count: Result count used when the model does not pass one
    """

    def __init__(
        self,
        search_client: BraveSearchClient,
        feed_urls: Optional[Sequence[str]] = None,
        default_count: int = 10
    ):
        self.search_client = search_client
        self.feed_urls = list(feed_urls or [])
        self.default_count = default_count
        self._declarations = get_tool_definitions(feeds_enabled=bool(self.feed_urls))

    def declarations(self) -> List[types.FunctionDeclaration]:
        return list(self._declarations)

    def with_default_count(self, default_count: int) -> "NewsToolbox":
        return NewsToolbox(self.search_client, self.feed_urls, default_count)

    async def execute_tool(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        """
        Execute a tool by name with given arguments.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments from the model

        Returns:
            Tool execution result as string (errors are reported as text)
        """
        logger.info(f"Executing tool: {tool_name}")

        try:
            if tool_name == "search_news":
                query = str(arguments.get("query", "")).strip()
                if not query:
                    return "Missing required argument: query"
                count = clamp_count(arguments.get("count", self.default_count))
                results = await self.search_client.search(query, count)
                return format_search_results(results)

            elif tool_name == "browse_news_feeds":
                if not self.feed_urls:
                    return "News feeds not configured"
                count = clamp_count(arguments.get("count", self.default_count))
                items = await fetch_feed_items(self.feed_urls, count, arguments.get("keyword") or None)
                return format_search_results(items)

            else:
                logger.warning(f"Unknown tool: {tool_name}")
                return f"Unknown tool: {tool_name}"

        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}", exc_info=True)
            return f"Tool {tool_name} failed: {str(e)}"
