"""Client for the song.link (Odesli) cross-platform lookup API."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from nowplaying.utils.http import RetryConfig, request_with_retry


class SongLinkClient:
    """Look up the same track on other streaming platforms."""

    _BASE_URL = "https://api.song.link/v1-alpha.1/links"

    def __init__(
        self,
        *,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._retry_config = retry_config or RetryConfig(attempts=2, backoff_seconds=0.5)
        self._transport = transport
        self._timeout = timeout

    async def lookup_spotify_track(self, track_id: str) -> Dict[str, Any]:
        """Return the raw lookup payload for a Spotify track identifier."""
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await request_with_retry(
                client.get,
                self._BASE_URL,
                params={"url": f"spotify:track:{track_id}"},
                retry_config=self._retry_config,
            )
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected song.link payload shape")
        return payload


__all__ = ["SongLinkClient"]
