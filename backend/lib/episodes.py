"""
Episode and story records in Supabase.

The supabase client is synchronous; every call runs in a worker thread so
the event loop keeps serving requests while a daily episode is written.
Episodes carry an episode_date (UTC, YYYY-MM-DD) so the daily job can tell
whether today's episode already exists.
"""

import asyncio
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from supabase import Client

logger = logging.getLogger(__name__)

EPISODES_TABLE = "podcast_episodes"
STORIES_TABLE = "stories"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class EpisodeStore:
    """Persistence for podcast_episodes and stories rows."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _create_episode(self, title: str, script: str, episode_date: date) -> Dict[str, Any]:
        episode = {
            "id": str(uuid.uuid4()),
            "title": title,
            "script": script,
            "status": "pending",
            "episode_date": episode_date.isoformat(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        response = self.supabase.table(EPISODES_TABLE).insert(episode).execute()
        return response.data[0] if response.data else episode

    async def create_episode(
        self,
        title: str,
        script: str = "",
        episode_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Insert a new episode row in the pending state.

        Args:
            title: Episode title
            script: Full script, if already known
            episode_date: Day the episode belongs to (defaults to today, UTC)

        Returns:
            The inserted row
        """
        episode = await asyncio.to_thread(self._create_episode, title, script, episode_date or utc_today())
        logger.info(f"Created episode {episode['id']}: {title}")
        return episode

    def _update_episode(self, episode_id: str, fields: Dict[str, Any]) -> None:
        self.supabase.table(EPISODES_TABLE).update(fields).eq("id", episode_id).execute()

    async def update_episode(self, episode_id: str, **fields: Any) -> None:
        await asyncio.to_thread(self._update_episode, episode_id, fields)

    async def set_status(self, episode_id: str, status: str, error: Optional[str] = None) -> None:
        fields: Dict[str, Any] = {"status": status}
        if error is not None:
            fields["error"] = error
        await self.update_episode(episode_id, **fields)
        logger.info(f"Episode {episode_id} -> {status}")

    def _insert_story(self, story: Dict[str, Any]) -> None:
        self.supabase.table(STORIES_TABLE).insert(story).execute()

    async def insert_story(
        self,
        episode_id: str,
        story_id: str,
        headline: str,
        script: str,
        audio_url: str,
        order: int
    ) -> Dict[str, Any]:
        story = {
            "id": story_id,
            "episode_id": episode_id,
            "headline": headline,
            "script": script,
            "audio_url": audio_url,
            "order": order,
        }
        await asyncio.to_thread(self._insert_story, story)
        return story

    def _with_stories(self, episode: Dict[str, Any]) -> Dict[str, Any]:
        stories = self.supabase.table(STORIES_TABLE)\
            .select("*")\
            .eq("episode_id", episode["id"])\
            .order("order")\
            .execute()

        return {
            "episode": {
                "id": episode["id"],
                "title": episode.get("title"),
                "episode_date": episode.get("episode_date"),
                "created_at": episode.get("created_at"),
            },
            "stories": [
                {
                    "id": story["id"],
                    "headline": story.get("headline"),
                    "script": story.get("script"),
                    "audio_url": story.get("audio_url"),
                    "order": story.get("order"),
                }
                for story in (stories.data or [])
            ],
        }

    def _get_latest_episode(self) -> Optional[Dict[str, Any]]:
        response = self.supabase.table(EPISODES_TABLE)\
            .select("*")\
            .eq("status", "complete")\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        if not response.data:
            return None
        return self._with_stories(response.data[0])

    async def get_latest_episode(self) -> Optional[Dict[str, Any]]:
        """
        Latest complete episode with its stories in order.

        Returns:
            {"episode": {...}, "stories": [...]} or None when nothing is published
        """
        return await asyncio.to_thread(self._get_latest_episode)

    def _get_episode_for_date(self, episode_date: date) -> Optional[Dict[str, Any]]:
        response = self.supabase.table(EPISODES_TABLE)\
            .select("*")\
            .eq("episode_date", episode_date.isoformat())\
            .eq("status", "complete")\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        if not response.data:
            logger.info(f"No complete episode for {episode_date.isoformat()}")
            return None
        return self._with_stories(response.data[0])

    async def get_episode_for_date(self, episode_date: date) -> Optional[Dict[str, Any]]:
        """
        Complete episode for one day, with its stories in order.

        Args:
            episode_date: The episode's day

        Returns:
            Same shape as get_latest_episode, or None
        """
        return await asyncio.to_thread(self._get_episode_for_date, episode_date)
