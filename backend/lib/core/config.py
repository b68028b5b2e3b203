"""
Environment-driven configuration.

Values are read once at startup (after load_dotenv) into an immutable
Settings object that is passed to the services that need it.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationMissing

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_TTS_VOICE = "Kore"
DEFAULT_AUDIO_BUCKET = "podcast-audio"

# Settings attribute for every required-able environment variable
_ENV_ATTRIBUTES = {
    "GEMINI_API_KEY": "gemini_api_key",
    "BRAVE_API_KEY": "brave_api_key",
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_SERVICE_KEY": "supabase_service_key",
    "CRON_SECRET": "cron_secret",
}


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    brave_api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    cron_secret: Optional[str] = None
    news_feeds: Tuple[str, ...] = field(default_factory=tuple)
    gemini_model: str = DEFAULT_GEMINI_MODEL
    tts_model: str = DEFAULT_TTS_MODEL
    tts_voice: str = DEFAULT_TTS_VOICE
    audio_bucket: str = DEFAULT_AUDIO_BUCKET
    headlines_cache_file: Optional[str] = None
    refresh_check_seconds: float = 3600.0
    story_delay_seconds: float = 1.0
    daily_story_count: int = 5
    frontend_url: str = "http://localhost:3000"
    allow_all_origins: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            brave_api_key=env.get("BRAVE_API_KEY") or None,
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_service_key=env.get("SUPABASE_SERVICE_KEY") or None,
            cron_secret=env.get("CRON_SECRET") or None,
            news_feeds=_split_csv(env.get("NEWS_FEEDS")),
            gemini_model=env.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            tts_model=env.get("GEMINI_TTS_MODEL", DEFAULT_TTS_MODEL),
            tts_voice=env.get("TTS_VOICE", DEFAULT_TTS_VOICE),
            audio_bucket=env.get("AUDIO_BUCKET", DEFAULT_AUDIO_BUCKET),
            headlines_cache_file=env.get("HEADLINES_CACHE_FILE") or None,
            refresh_check_seconds=float(env.get("HEADLINE_REFRESH_CHECK_SECONDS", 3600)),
            story_delay_seconds=float(env.get("STORY_DELAY_SECONDS", 1.0)),
            daily_story_count=int(env.get("DAILY_STORY_COUNT", 5)),
            frontend_url=env.get("FRONTEND_URL", "http://localhost:3000"),
            allow_all_origins=env.get("ALLOW_ALL_ORIGINS", "false").lower() == "true",
        )

    def is_configured(self, name: str) -> bool:
        return bool(getattr(self, _ENV_ATTRIBUTES[name]))

    def require(self, *names: str) -> None:
        """Raise ConfigurationMissing for the first unset variable in names."""
        for name in names:
            if not self.is_configured(name):
                raise ConfigurationMissing(name)
