"""
FastAPI application entrypoint for the now-playing relay.

The same process serves the Spotify OAuth callback, receives Telegram
updates and runs the cache sweep and token refresh loops.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from nowplaying import dependencies
from nowplaying.api.routes import router as api_router
from nowplaying.core.config import get_settings
from nowplaying.core.logging import configure_logging
from nowplaying.services import PeriodicTask

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load credentials, register the bot and start the background loops."""
    settings = get_settings()

    await dependencies.get_credential_store().load()
    await dependencies.get_bot().setup()

    track_cache = dependencies.get_track_cache()
    background = [
        PeriodicTask(
            "track-cache-sweep",
            settings.scheduling.track_cache_ttl_seconds,
            track_cache.sweep,
        ),
        PeriodicTask(
            "token-refresh",
            settings.scheduling.token_refresh_interval_seconds,
            dependencies.get_token_refresher().refresh_all,
        ),
    ]
    for task in background:
        task.start()

    poller = None
    if settings.telegram.update_mode == "polling":
        poller = dependencies.get_telegram_poller()
        poller.start()

    logger.info("Callback server is running on port %s", settings.port)
    try:
        yield
    finally:
        if poller is not None:
            await poller.stop()
        for task in background:
            await task.stop()
        await dependencies.get_telegram_client().aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Spotify Now Playing Relay",
        version="0.1.0",
        description="Shares the Spotify track you are listening to in Telegram chats.",
        lifespan=lifespan,
    )
    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app", "lifespan"]
