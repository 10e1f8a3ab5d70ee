"""Best-effort resolution of a Spotify track to links on other platforms."""

from __future__ import annotations

import logging
from typing import Any, Dict

from nowplaying.clients.song_link import SongLinkClient
from nowplaying.schemas.track import PlatformLinks

logger = logging.getLogger(__name__)

SONG_LINK_SHORT_URL = "https://song.link/s/{track_id}"

# song.link platform key -> PlatformLinks field
_PLATFORM_FIELDS: Dict[str, str] = {
    "spotify": "spotify",
    "appleMusic": "apple_music",
    "yandex": "yandex",
    "youtube": "youtube",
    "youtubeMusic": "youtube_music",
}


def fallback_links(track_id: str) -> PlatformLinks:
    return PlatformLinks(song_link=SONG_LINK_SHORT_URL.format(track_id=track_id))


def _extract_links(track_id: str, payload: Dict[str, Any]) -> PlatformLinks:
    by_platform = payload.get("linksByPlatform")
    if not isinstance(by_platform, dict):
        by_platform = {}

    found: Dict[str, str] = {}
    for platform, field_name in _PLATFORM_FIELDS.items():
        entry = by_platform.get(platform)
        url = entry.get("url") if isinstance(entry, dict) else None
        if isinstance(url, str) and url:
            found[field_name] = url
    return PlatformLinks(
        song_link=SONG_LINK_SHORT_URL.format(track_id=track_id), **found
    )


class LinkResolver:
    """Wrap :class:`SongLinkClient` so lookups always yield a usable result."""

    def __init__(self, client: SongLinkClient) -> None:
        self._client = client

    async def get_platform_links(self, track_id: str) -> PlatformLinks:
        """Return per-platform links, degrading to the song.link fallback only."""
        try:
            payload = await self._client.lookup_spotify_track(track_id)
        except Exception:  # pylint: disable=broad-except
            logger.warning(
                "Error getting platform links for %s", track_id, exc_info=True
            )
            return fallback_links(track_id)
        return _extract_links(track_id, payload)


__all__ = ["LinkResolver", "SONG_LINK_SHORT_URL", "fallback_links"]
