"""
Headlines router - cached AI news headlines and the refresh cron hook.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from lib.news.cache import HeadlineCache
from .dependencies import get_headline_cache, verify_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(tags=["headlines"])


# ==================== Endpoints ====================

@router.get("/headlines")
async def get_headlines(
    refresh: bool = False,
    wait: bool = False,
    cache: HeadlineCache = Depends(get_headline_cache)
):
    """
    Get the current headline list.

    By default this never waits: a cold cache returns placeholder headlines
    with isLoading=true while the first curation runs in the background.

    - refresh=true: run a fresh curation now and wait for it
    - wait=true: wait for the first curation if the cache is empty
    """
    try:
        if refresh:
            logger.info("🔄 Forced headline refresh requested")
            view = await cache.force_refresh()
        elif wait:
            view = await cache.read_blocking()
        else:
            view = cache.read_nonblocking()

        return view.to_dict()

    except Exception as e:
        logger.error(f"Headline fetch failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.api_route("/cron/refresh-headlines", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def cron_refresh_headlines(cache: HeadlineCache = Depends(get_headline_cache)):
    """
    Start a headline refresh in the background and return immediately.

    Intended for an external scheduler hitting this URL daily at 6 AM Eastern.
    """
    previous = cache.snapshot
    started = cache.trigger_refresh()

    return {
        "success": True,
        "message": "Headline refresh started in background" if started else "Headline refresh already in progress",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "previousCache": {
            "count": len(previous.headlines),
            "lastFetch": previous.last_fetch.isoformat(),
            "strategy": previous.strategy
        } if previous else None
    }
