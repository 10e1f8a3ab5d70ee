"""
Spotify Web API utilities.

These helpers manage the authorization-code flow, the token refresh lifecycle
and the "currently playing" lookup.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx

from fastapi import status

from nowplaying.core.config import SpotifySettings
from nowplaying.core.errors import UpstreamAuthExpiredError, UpstreamUnavailableError
from nowplaying.models.credential import CredentialRecord

logger = logging.getLogger(__name__)


def _error_reason(response: httpx.Response) -> str:
    """Pull a short reason out of a Spotify error body."""
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(payload, dict):
        return f"HTTP {response.status_code}"
    error = payload.get("error")
    if isinstance(error, dict):
        # Web API errors: {"error": {"status": 401, "message": "..."}}
        return str(error.get("message") or response.status_code)
    return str(payload.get("error_description") or error or response.status_code)


def _json_object(response: httpx.Response, what: str) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamUnavailableError(f"Malformed {what} payload from Spotify.") from exc
    if not isinstance(payload, dict):
        raise UpstreamUnavailableError(f"Malformed {what} payload from Spotify.")
    return payload


class SpotifyClient:
    """Build Spotify authorization URLs, exchange codes and read playback state."""

    AUTH_BASE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"
    API_BASE_URL = "https://api.spotify.com/v1"

    def __init__(
        self,
        settings: SpotifySettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def build_authorization_url(
        self, state: str, scopes: Iterable[str] | None = None
    ) -> str:
        """Construct the Spotify consent URL carrying ``state`` back to the callback."""
        params = {
            "client_id": self._settings.client_id,
            "response_type": "code",
            "redirect_uri": str(self._settings.redirect_uri),
            "scope": " ".join(scopes if scopes is not None else self._settings.scopes),
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def _post_token(self, data: Dict[str, str]) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.post(
                    self.TOKEN_URL,
                    data=data,
                    auth=(self._settings.client_id, self._settings.client_secret),
                )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Spotify token endpoint unreachable: {exc}") from exc

    async def exchange_authorization_code(self, code: str) -> CredentialRecord:
        """Exchange an authorization code for an access/refresh token pair."""
        response = await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": str(self._settings.redirect_uri),
            }
        )
        if response.status_code != status.HTTP_200_OK:
            raise UpstreamUnavailableError(_error_reason(response))

        payload = _json_object(response, "token")
        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        if not access_token or not refresh_token:
            raise UpstreamUnavailableError("Incomplete token payload returned from Spotify.")

        return CredentialRecord(access_token=access_token, refresh_token=refresh_token)

    async def refresh_access_token(
        self, refresh_token: str
    ) -> tuple[str, Optional[str]]:
        """
        Exchange a refresh token for a new access token.

        Returns ``(access_token, rotated_refresh_token)``; the second element is
        ``None`` unless Spotify issued a replacement refresh token.
        """
        response = await self._post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            raise UpstreamAuthExpiredError(_error_reason(response))
        if response.status_code == status.HTTP_400_BAD_REQUEST:
            reason = _error_reason(response)
            if "invalid_grant" in response.text:
                raise UpstreamAuthExpiredError(reason)
            raise UpstreamUnavailableError(reason)
        if response.status_code != status.HTTP_200_OK:
            raise UpstreamUnavailableError(_error_reason(response))

        payload = _json_object(response, "refresh")
        access_token = payload.get("access_token")
        if not access_token:
            raise UpstreamUnavailableError("Incomplete refresh payload returned from Spotify.")
        return access_token, payload.get("refresh_token")

    async def get_currently_playing(self, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the raw "currently playing" payload for the token's owner.

        Returns ``None`` when Spotify answers 204 (no active device).
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.API_BASE_URL}/me/player/currently-playing",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Spotify API unreachable: {exc}") from exc

        if response.status_code == status.HTTP_204_NO_CONTENT:
            return None
        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            raise UpstreamAuthExpiredError(_error_reason(response))
        if response.status_code != status.HTTP_200_OK:
            raise UpstreamUnavailableError(_error_reason(response))

        if not response.content:
            return None
        return _json_object(response, "playback")


__all__ = ["SpotifyClient"]
