"""
Service assembly.

Builds every long-lived service once from Settings. Services whose
credentials are missing are left as None; the accessors raise
ConfigurationMissing naming the variable to set.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Coroutine, Optional, Set

from google import genai
from supabase import create_client

from lib.core.agent_loop import AgenticLoop
from lib.core.config import Settings
from lib.core.errors import ConfigurationMissing
from lib.core.gemini_client import GeminiProvider
from lib.core.retry import RetryPolicy
from lib.episodes import EpisodeStore
from lib.news.cache import HeadlineCache, HeadlineCacheFile
from lib.news.headlines import HeadlineCurator
from lib.news.search import BraveSearchClient
from lib.news.tools import NewsToolbox
from lib.podcasts.agent import PodcastAgent
from lib.podcasts.audio import AudioRenderer, GeminiSpeechSynthesizer, select_concatenator
from lib.podcasts.episode import EpisodeGenerator

logger = logging.getLogger(__name__)

CURATION_SEARCH_COUNT = 20
SCRIPT_SEARCH_COUNT = 10


@dataclass
class Services:
    settings: Settings
    concatenator: Any
    cache: Optional[HeadlineCache] = None
    agent: Optional[PodcastAgent] = None
    renderer: Optional[AudioRenderer] = None
    episode_store: Optional[EpisodeStore] = None
    episode_generator: Optional[EpisodeGenerator] = None
    background_tasks: Set[asyncio.Task] = field(default_factory=set)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """Run a fire-and-forget job; failures are logged, never raised."""
        task = asyncio.create_task(coro, name=name)
        self.background_tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self.background_tasks.discard(t)
            if t.cancelled():
                logger.warning(f"⚠️ Background job {name} cancelled")
            elif t.exception() is not None:
                logger.error(f"❌ Background job {name} failed: {t.exception()}", exc_info=t.exception())
            else:
                logger.info(f"✅ Background job {name} finished")

        task.add_done_callback(_done)
        return task

    async def close(self) -> None:
        for task in list(self.background_tasks):
            task.cancel()
        if self.background_tasks:
            await asyncio.gather(*self.background_tasks, return_exceptions=True)
        if self.cache is not None:
            await self.cache.close()

    def _missing(self, *names: str) -> ConfigurationMissing:
        for name in names:
            if not self.settings.is_configured(name):
                return ConfigurationMissing(name)
        return ConfigurationMissing(names[0])

    def require_cache(self) -> HeadlineCache:
        if self.cache is None:
            raise self._missing("GEMINI_API_KEY", "BRAVE_API_KEY")
        return self.cache

    def require_agent(self) -> PodcastAgent:
        if self.agent is None:
            raise self._missing("GEMINI_API_KEY", "BRAVE_API_KEY")
        return self.agent

    def require_renderer(self) -> AudioRenderer:
        if self.renderer is None:
            raise self._missing("GEMINI_API_KEY")
        return self.renderer

    def require_episode_store(self) -> EpisodeStore:
        if self.episode_store is None:
            raise self._missing("SUPABASE_URL", "SUPABASE_SERVICE_KEY")
        return self.episode_store

    def require_episode_generator(self) -> EpisodeGenerator:
        if self.episode_generator is None:
            raise self._missing("GEMINI_API_KEY", "BRAVE_API_KEY", "SUPABASE_URL", "SUPABASE_SERVICE_KEY")
        return self.episode_generator


def build_curator(settings: Settings, genai_client: Optional[genai.Client] = None) -> HeadlineCurator:
    """Curator wired to Gemini and Brave; used by the app and the CLI."""
    settings.require("GEMINI_API_KEY", "BRAVE_API_KEY")
    genai_client = genai_client or genai.Client(api_key=settings.gemini_api_key)

    search_client = BraveSearchClient(settings.brave_api_key, retry_policy=RetryPolicy())
    toolbox = NewsToolbox(search_client, settings.news_feeds, default_count=CURATION_SEARCH_COUNT)
    provider = GeminiProvider(genai_client, model=settings.gemini_model)
    return HeadlineCurator(AgenticLoop(provider, toolbox, retry_policy=RetryPolicy()))


def build_services(settings: Settings, concatenator: Any = None) -> Services:
    """
    Build all services the configured credentials allow.

    Args:
        settings: Application settings
        concatenator: Override the detected audio concatenation strategy

    Returns:
        Services container
    """
    services = Services(settings=settings, concatenator=concatenator or select_concatenator())

    genai_client = None
    if settings.gemini_api_key:
        genai_client = genai.Client(api_key=settings.gemini_api_key)
        logger.info("✅ Gemini client initialized")
    else:
        logger.warning("⚠️  GEMINI_API_KEY not configured - curation, scripts and audio disabled")

    if genai_client and settings.brave_api_key:
        curator = build_curator(settings, genai_client)
        snapshot_file = HeadlineCacheFile(settings.headlines_cache_file) if settings.headlines_cache_file else None
        services.cache = HeadlineCache(curator, snapshot_file=snapshot_file)
        services.cache.load_snapshot()

        script_toolbox = curator.loop.toolbox.with_default_count(SCRIPT_SEARCH_COUNT)
        script_loop = AgenticLoop(curator.loop.provider, script_toolbox, retry_policy=RetryPolicy())
        services.agent = PodcastAgent(script_loop, story_delay=settings.story_delay_seconds)

        tool_names = [t.name for t in script_toolbox.declarations()]
        logger.info(f"✅ News agents initialized with tools: {', '.join(tool_names)}")
    elif not settings.brave_api_key:
        logger.warning("⚠️  BRAVE_API_KEY not configured - headline curation disabled")

    if genai_client:
        synthesizer = GeminiSpeechSynthesizer(genai_client, model=settings.tts_model, voice=settings.tts_voice)
        services.renderer = AudioRenderer(synthesizer, services.concatenator)

    if settings.supabase_url and settings.supabase_service_key:
        supabase = create_client(settings.supabase_url, settings.supabase_service_key)
        services.episode_store = EpisodeStore(supabase)
        logger.info("✅ Supabase client initialized")

        if services.agent and services.renderer:
            services.episode_generator = EpisodeGenerator(
                services.agent,
                services.renderer,
                services.episode_store,
                supabase,
                bucket=settings.audio_bucket,
                story_delay=settings.story_delay_seconds
            )
    else:
        logger.warning("⚠️  Supabase not configured - episode storage disabled")

    return services
