"""
Core utilities for backend services.
"""

from .agent_loop import AgenticLoop, FinalTurn, ToolCall, ToolCallTurn
from .config import Settings
from .errors import ConfigurationMissing, MalformedResponse, NewsPodcastError, ProviderUnavailable, RateLimited
from .gemini_client import GeminiProvider
from .retry import RetryPolicy

__all__ = [
    'AgenticLoop',
    'FinalTurn',
    'ToolCall',
    'ToolCallTurn',
    'Settings',
    'ConfigurationMissing',
    'MalformedResponse',
    'NewsPodcastError',
    'ProviderUnavailable',
    'RateLimited',
    'GeminiProvider',
    'RetryPolicy',
]
