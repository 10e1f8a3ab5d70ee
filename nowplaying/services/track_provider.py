"""
Fetch the user's currently playing track, consulting the track cache first.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from nowplaying.clients.spotify import SpotifyClient
from nowplaying.core.errors import NotPlayingError, UpstreamUnavailableError
from nowplaying.schemas.track import AlbumInfo, TrackSnapshot
from nowplaying.services.track_cache import TrackCache

logger = logging.getLogger(__name__)


def normalize_track(item: Dict[str, Any]) -> TrackSnapshot:
    """Convert a Spotify track object into a :class:`TrackSnapshot`."""
    try:
        uri = item.get("uri") or ""
        uri_parts = uri.split(":")
        track_id = uri_parts[2] if len(uri_parts) > 2 else item["id"]
        album = item["album"]
        images = album.get("images") or []
        return TrackSnapshot(
            id=track_id,
            name=item["name"],
            artists=", ".join(artist["name"] for artist in item.get("artists", [])),
            album=AlbumInfo(
                name=album["name"],
                release_date=album.get("release_date"),
                image=images[0].get("url") if images else None,
            ),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise UpstreamUnavailableError("Unexpected track payload from Spotify.") from exc


class TrackProvider:
    """Resolve "now playing" snapshots with a short-lived per-user cache."""

    def __init__(self, spotify_client: SpotifyClient, cache: TrackCache) -> None:
        self._spotify = spotify_client
        self._cache = cache

    async def get_current_track(self, user_id: str, access_token: str) -> TrackSnapshot:
        cached = self._cache.get(user_id)
        if cached is not None:
            return cached

        payload = await self._spotify.get_currently_playing(access_token)
        if not payload or not payload.get("item"):
            raise NotPlayingError("Nothing is playing for this user.")

        snapshot = normalize_track(payload["item"])
        self._cache.put(user_id, snapshot)
        logger.debug("Fetched current track", extra={"user_id": user_id})
        return snapshot


__all__ = ["TrackProvider", "normalize_track"]
