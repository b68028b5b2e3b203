#!/usr/bin/env python3
"""
AI News Podcast Backend

FastAPI backend serving curated AI news headlines and generated podcast
episodes, with clean router-based organization.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from lib.core.config import Settings
from lib.core.errors import ConfigurationMissing
from lib.services import build_services

# Import routers
from routers import headlines_router, podcasts_router

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info("=" * 80)
    logger.info("Starting AI News Podcast Backend")
    logger.info("=" * 80)

    settings: Settings = app.state.settings

    if getattr(app.state, "services", None) is None:
        try:
            app.state.services = build_services(settings)
        except Exception as e:
            logger.error(f"❌ Failed to initialize services: {e}")
            raise
    services = app.state.services

    scheduler = None
    if services.cache is not None:
        # Pre-warm so the first visitor does not wait for curation
        services.cache.trigger_refresh()
        scheduler = asyncio.create_task(
            services.cache.run_scheduler(settings.refresh_check_seconds),
            name="headline-scheduler"
        )
        logger.info("✅ Headline cache pre-warm and hourly refresh check started")

    logger.info(f"Audio concatenation strategy: {services.concatenator.name}")
    logger.info("=" * 80)
    logger.info("Backend ready to serve requests")
    logger.info("=" * 80)

    yield

    logger.info("Shutting down AI News Podcast Backend")
    if scheduler is not None:
        scheduler.cancel()
        await asyncio.gather(scheduler, return_exceptions=True)
    await services.close()


def create_app(settings: Settings) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings

    Returns:
        Configured FastAPI app (services are built on startup unless
        app.state.services is already set)
    """
    app = FastAPI(
        title="AI News Podcast API",
        description="Curated AI news headlines and generated podcast episodes",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.services = None

    # Configure CORS
    if settings.allow_all_origins:
        logger.info("CORS: Allowing all origins")
        allowed_origins = ["*"]
    else:
        allowed_origins = [settings.frontend_url]
        logger.info(f"CORS: Allowing specific origins: {allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConfigurationMissing)
    async def configuration_missing_handler(request: Request, exc: ConfigurationMissing):
        logger.error(f"❌ {exc} (requested {request.url.path})")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # Register routers
    app.include_router(headlines_router)
    app.include_router(podcasts_router)

    # ==================== Root Endpoints ====================

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "AI News Podcast API",
            "version": "1.0.0",
            "routes": {
                "headlines": "/headlines",
                "scripts": "/generate-script",
                "audio": "/generate-audio",
                "episodes": "/generate-episode, /episodes/latest",
                "cron": "/cron/refresh-headlines, /cron/generate-daily-podcast"
            }
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        services = request.app.state.services
        cache = services.cache
        snapshot = cache.snapshot if cache is not None else None

        return {
            "status": "healthy",
            "services": {
                "headlines": "ready" if cache is not None else "not configured",
                "scripts": "ready" if services.agent is not None else "not configured",
                "audio": "ready" if services.renderer is not None else "not configured",
                "episodes": "ready" if services.episode_store is not None else "not configured",
                "audio_concatenation": services.concatenator.name
            },
            "headline_cache": {
                "count": len(snapshot.headlines) if snapshot else 0,
                "lastFetch": snapshot.last_fetch.isoformat() if snapshot else None,
                "isRefreshing": cache.is_refreshing if cache is not None else False
            }
        }

    return app


# Create FastAPI app
app = create_app(Settings.from_env())


if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info"
    )
