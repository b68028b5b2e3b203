"""
Shared FastAPI dependencies.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, Request

from lib.core.errors import ConfigurationMissing
from lib.episodes import EpisodeStore
from lib.news.cache import HeadlineCache
from lib.podcasts.agent import PodcastAgent
from lib.podcasts.audio import AudioRenderer
from lib.podcasts.episode import EpisodeGenerator
from lib.services import Services

logger = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    """Get the services container built at startup."""
    return request.app.state.services


def get_headline_cache(services: Services = Depends(get_services)) -> HeadlineCache:
    return services.require_cache()


def get_podcast_agent(services: Services = Depends(get_services)) -> PodcastAgent:
    return services.require_agent()


def get_audio_renderer(services: Services = Depends(get_services)) -> AudioRenderer:
    return services.require_renderer()


def get_episode_store(services: Services = Depends(get_services)) -> EpisodeStore:
    return services.require_episode_store()


def get_episode_generator(services: Services = Depends(get_services)) -> EpisodeGenerator:
    return services.require_episode_generator()


def verify_cron_secret(
    secret: Optional[str] = Query(None),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
) -> None:
    """
    Check the cron secret from ?secret= or an "Authorization: Bearer" header.

    There is no default secret; an unconfigured CRON_SECRET fails closed.
    """
    expected = services.settings.cron_secret
    if not expected:
        raise ConfigurationMissing("CRON_SECRET")

    provided = secret
    if provided is None and authorization and authorization.lower().startswith("bearer "):
        provided = authorization[7:].strip()

    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("⚠️ Rejected cron request with missing or wrong secret")
        raise HTTPException(status_code=401, detail="Unauthorized")
