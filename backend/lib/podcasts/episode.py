"""
Episode generation.

Turns a list of headlines into a persisted episode: scripts first, then one
audio clip per story, uploaded and recorded in order.
"""

import asyncio
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..episodes import utc_today
from ..storage import upload_story_audio
from .agent import PodcastAgent
from .audio import AudioRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoryResult:
    episode_id: str
    story_id: str
    headline: str
    script: str
    audio_url: str
    order: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EpisodeGenerator:
    """
    Generates, uploads and records a full episode.

    Args:
        agent: Script agent
        renderer: Audio renderer
        store: EpisodeStore
        supabase: Supabase client used for audio uploads
        bucket: Storage bucket for story audio
        story_delay: Seconds to wait between stories
        sleep: Async sleep (tests pass a fake)
    """

    def __init__(
        self,
        agent: PodcastAgent,
        renderer: AudioRenderer,
        store: Any,
        supabase: Any,
        bucket: str = "podcast-audio",
        story_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.agent = agent
        self.renderer = renderer
        self.store = store
        self.supabase = supabase
        self.bucket = bucket
        self.story_delay = story_delay
        self.sleep = sleep

    async def _render_story(
        self,
        episode_id: str,
        headline: str,
        script: str,
        order: int
    ) -> Optional[StoryResult]:
        story_id = str(uuid.uuid4())

        clip = await self.renderer.render(script)
        audio_url = await asyncio.to_thread(
            upload_story_audio,
            self.supabase,
            clip.data,
            story_id,
            clip.extension,
            clip.mime_type,
            self.bucket
        )
        if not audio_url:
            logger.error(f"❌ Upload failed for story {order}, skipping")
            return None

        await self.store.insert_story(
            episode_id=episode_id,
            story_id=story_id,
            headline=headline,
            script=script,
            audio_url=audio_url,
            order=order
        )
        return StoryResult(
            episode_id=episode_id,
            story_id=story_id,
            headline=headline,
            script=script,
            audio_url=audio_url,
            order=order
        )

    async def generate_episode(
        self,
        headlines: List[str],
        title: Optional[str] = None,
        episode_date: Optional[date] = None
    ) -> List[StoryResult]:
        """
        Generate a complete episode for the given headlines.

        A story whose audio cannot be produced or uploaded is skipped; the
        episode is complete when at least one story made it.

        Args:
            headlines: Headlines in episode order
            title: Episode title (defaults to "Daily Podcast - <date>")
            episode_date: Day the episode belongs to (defaults to today, UTC)

        Returns:
            One StoryResult per published story, numbered 1..n in order
        """
        if not headlines:
            raise ValueError("No headlines provided")

        episode_date = episode_date or utc_today()
        title = title or f"Daily Podcast - {episode_date.isoformat()}"
        episode = await self.store.create_episode(title, episode_date=episode_date)
        episode_id = episode["id"]

        try:
            bundle = await self.agent.generate_scripts(headlines)
            await self.store.update_episode(episode_id, script=bundle.full_script, status="generating")
            logger.info(f"Episode {episode_id} -> generating")

            results: List[StoryResult] = []
            for idx, (headline, script) in enumerate(zip(headlines, bundle.scripts)):
                if idx > 0 and self.story_delay > 0:
                    await self.sleep(self.story_delay)

                logger.info(f"🎵 Rendering story {idx + 1}/{len(headlines)}")
                try:
                    result = await self._render_story(episode_id, headline, script, len(results) + 1)
                except Exception as e:
                    logger.error(f"❌ Story {idx + 1} failed, skipping: {e}", exc_info=True)
                    continue
                if result is not None:
                    results.append(result)

            if results:
                await self.store.set_status(episode_id, "complete")
                logger.info(f"✅ Episode {episode_id} complete with {len(results)}/{len(headlines)} stories")
            else:
                await self.store.set_status(episode_id, "failed", error="No story audio could be generated")
            return results

        except Exception as e:
            logger.error(f"❌ Episode {episode_id} failed: {e}", exc_info=True)
            await self.store.set_status(episode_id, "failed", error=str(e))
            raise


async def run_daily_podcast(
    cache: Any,
    generator: EpisodeGenerator,
    story_count: int = 5,
    episode_date: Optional[date] = None
) -> Optional[List[StoryResult]]:
    """
    Generate the daily episode from the top cached headlines.

    Does nothing when a complete episode already exists for the day, so a
    retried or double-fired cron does not publish twice. Waits for the
    headline cache when it is still empty.

    Returns:
        Published stories, or None when the day's episode already existed
    """
    episode_date = episode_date or utc_today()
    existing = await generator.store.get_episode_for_date(episode_date)
    if existing is not None:
        logger.info(f"✅ Episode for {episode_date.isoformat()} already exists ({existing['episode']['id']}), skipping")
        return None

    view = await cache.read_blocking()
    headlines = view.headlines[:story_count]
    logger.info(f"📰 Generating daily podcast for {episode_date.isoformat()} from {len(headlines)} headlines")
    return await generator.generate_episode(headlines, episode_date=episode_date)
