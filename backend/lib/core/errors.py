"""
Error taxonomy shared by the provider adapters, services and routers.
"""

from typing import Optional


class NewsPodcastError(Exception):
    """Base class for errors raised by the news podcast services."""


class ProviderUnavailable(NewsPodcastError):
    """
    An external provider (search, LLM, TTS, storage) failed outright.

    Args:
        message: Human-readable description
        status_code: HTTP status reported by the provider, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        """Network errors, timeouts, 429 and 5xx are worth retrying."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class RateLimited(ProviderUnavailable):
    """Provider answered HTTP 429."""

    def __init__(self, message: str):
        super().__init__(message, status_code=429)


class MalformedResponse(NewsPodcastError):
    """Provider answered, but not with anything we can use."""


class ConfigurationMissing(NewsPodcastError):
    """A required environment variable is not set."""

    def __init__(self, name: str):
        super().__init__(f"{name} not configured")
        self.name = name
