"""
Tests for environment-driven settings.
"""

import pytest

from lib.core.config import DEFAULT_GEMINI_MODEL, Settings
from lib.core.errors import ConfigurationMissing


class TestSettings:
    """Tests for Settings.from_env and require."""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.gemini_api_key is None
        assert settings.gemini_model == DEFAULT_GEMINI_MODEL
        assert settings.news_feeds == ()
        assert settings.daily_story_count == 5
        assert settings.allow_all_origins is False

    def test_reads_environment(self):
        settings = Settings.from_env({
            "GEMINI_API_KEY": "g",
            "BRAVE_API_KEY": "b",
            "CRON_SECRET": "s",
            "NEWS_FEEDS": "https://a/rss, https://b/atom ,",
            "DAILY_STORY_COUNT": "3",
            "HEADLINE_REFRESH_CHECK_SECONDS": "600",
            "ALLOW_ALL_ORIGINS": "TRUE",
        })

        assert settings.gemini_api_key == "g"
        assert settings.news_feeds == ("https://a/rss", "https://b/atom")
        assert settings.daily_story_count == 3
        assert settings.refresh_check_seconds == 600.0
        assert settings.allow_all_origins is True

    def test_empty_values_are_unset(self):
        assert Settings.from_env({"BRAVE_API_KEY": ""}).brave_api_key is None

    def test_require_names_first_missing(self):
        settings = Settings(gemini_api_key="g")

        settings.require("GEMINI_API_KEY")
        with pytest.raises(ConfigurationMissing) as exc_info:
            settings.require("GEMINI_API_KEY", "BRAVE_API_KEY", "SUPABASE_URL")

        assert exc_info.value.name == "BRAVE_API_KEY"
        assert str(exc_info.value) == "BRAVE_API_KEY not configured"

    def test_is_configured(self):
        settings = Settings(supabase_url="https://x.supabase.co")

        assert settings.is_configured("SUPABASE_URL")
        assert not settings.is_configured("SUPABASE_SERVICE_KEY")
