"""
Podcasts router - scripts, audio and published episodes.

Script writing goes through PodcastAgent with news research tools; audio
is Gemini TTS joined by the startup-selected concatenation strategy.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from lib.episodes import EpisodeStore
from lib.news.cache import HeadlineCache
from lib.podcasts.agent import PodcastAgent
from lib.podcasts.audio import AudioRenderer
from lib.podcasts.episode import EpisodeGenerator, run_daily_podcast
from lib.services import Services
from .dependencies import (
    get_audio_renderer,
    get_episode_generator,
    get_episode_store,
    get_headline_cache,
    get_podcast_agent,
    get_services,
    verify_cron_secret,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["podcasts"])


# ==================== Request/Response Models ====================

class ScriptRequest(BaseModel):
    headlines: List[str]


class AudioRequest(BaseModel):
    """
    Audio request.

    Accepts both the old format (script: string) and the new format
    (scripts: string[]) for backward compatibility.
    """
    script: Optional[str] = None  # Legacy: single script
    scripts: Optional[List[str]] = None

    def get_scripts(self) -> List[str]:
        """Get scripts as a list, regardless of input format."""
        if self.scripts:
            scripts = [s for s in self.scripts if s and s.strip()]
        elif self.script and self.script.strip():
            scripts = [self.script]
        else:
            scripts = []
        if not scripts:
            raise ValueError("No script provided")
        return scripts


class EpisodeRequest(BaseModel):
    headlines: List[str]
    title: Optional[str] = None


def _clean_headlines(headlines: List[str]) -> List[str]:
    cleaned = [h.strip() for h in headlines if h and h.strip()]
    if not cleaned:
        raise HTTPException(status_code=400, detail="No headlines provided")
    return cleaned


# ==================== Endpoints ====================

@router.post("/generate-script")
async def generate_script(
    request: ScriptRequest,
    agent: PodcastAgent = Depends(get_podcast_agent)
):
    """Generate one spoken segment per selected headline, in order."""
    headlines = _clean_headlines(request.headlines)

    try:
        logger.info(f"Generating scripts for {len(headlines)} headline(s)")
        bundle = await agent.generate_scripts(headlines)
        return bundle.to_dict()

    except Exception as e:
        logger.error(f"Script generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate-audio")
async def generate_audio(
    request: AudioRequest,
    renderer: AudioRenderer = Depends(get_audio_renderer)
):
    """Render scripts to a single audio file and return the bytes."""
    try:
        scripts = request.get_scripts()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        clip = await renderer.render_scripts(scripts)

        return Response(
            content=clip.data,
            media_type=clip.mime_type,
            headers={
                "Content-Disposition": f'inline; filename="podcast.{clip.extension}"',
                "Cache-Control": "public, max-age=3600",
                "X-Audio-Strategy": clip.strategy
            }
        )

    except Exception as e:
        logger.error(f"Audio generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/generate-episode")
async def generate_episode(
    request: EpisodeRequest,
    generator: EpisodeGenerator = Depends(get_episode_generator)
):
    """
    Generate and publish an episode for the given headlines.

    This endpoint:
    1. Writes a script per headline with research tools
    2. Renders and uploads audio per story
    3. Records the episode and its stories
    """
    headlines = _clean_headlines(request.headlines)

    try:
        stories = await generator.generate_episode(headlines, title=request.title)

        if not stories:
            raise HTTPException(status_code=500, detail="Episode generation failed: no story audio could be generated")

        return {
            "success": True,
            "episode_id": stories[0].episode_id,
            "stories": [story.to_dict() for story in stories],
            "message": f"Episode generated with {len(stories)}/{len(headlines)} stories"
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Episode generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/episodes/latest")
async def get_latest_episode(
    episode_date: Optional[date] = Query(None, alias="date"),
    store: EpisodeStore = Depends(get_episode_store)
):
    """
    Get the latest complete episode with its stories in order.

    With ?date=YYYY-MM-DD, returns that day's episode instead.
    """
    try:
        if episode_date is not None:
            latest = await store.get_episode_for_date(episode_date)
        else:
            latest = await store.get_latest_episode()

        if latest is None:
            raise HTTPException(status_code=404, detail="No episode available")
        if not latest["stories"]:
            raise HTTPException(status_code=404, detail="No stories available")

        return latest

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch latest episode: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.api_route("/cron/generate-daily-podcast", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def cron_generate_daily_podcast(
    episode_date: Optional[date] = Query(None, alias="date"),
    services: Services = Depends(get_services),
    cache: HeadlineCache = Depends(get_headline_cache),
    generator: EpisodeGenerator = Depends(get_episode_generator)
):
    """
    Start the daily episode in the background and return immediately.

    The job skips itself when the day's episode is already complete.
    """
    services.spawn(
        run_daily_podcast(cache, generator, services.settings.daily_story_count, episode_date),
        name="daily-podcast"
    )

    return {
        "success": True,
        "message": "Daily podcast generation started in background",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
