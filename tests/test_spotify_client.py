try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from nowplaying.clients.spotify import SpotifyClient
from nowplaying.core.config import SpotifySettings
from nowplaying.core.errors import UpstreamAuthExpiredError, UpstreamUnavailableError


def _settings() -> SpotifySettings:
    return SpotifySettings(
        SPOTIFY_CLIENT_ID="client",
        SPOTIFY_CLIENT_SECRET="secret",
        SPOTIFY_REDIRECT_URI="https://example.com/callback",
    )


def _client(handler) -> SpotifyClient:
    return SpotifyClient(_settings(), transport=httpx.MockTransport(handler))


def test_authorization_url_carries_state_and_scope() -> None:
    url = SpotifyClient(_settings()).build_authorization_url(state="42")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "accounts.spotify.com"
    assert query["state"] == ["42"]
    assert query["scope"] == ["user-read-currently-playing"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["https://example.com/callback"]


@pytest.mark.asyncio
async def test_exchange_authorization_code_returns_record() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = parse_qs(request.content.decode())
        assert body["grant_type"] == ["authorization_code"]
        assert body["code"] == ["abc"]
        assert request.headers["authorization"].startswith("Basic ")
        return httpx.Response(
            200, json={"access_token": "access", "refresh_token": "refresh", "expires_in": 3600}
        )

    record = await _client(handler).exchange_authorization_code("abc")

    assert record.access_token == "access"
    assert record.refresh_token == "refresh"


@pytest.mark.asyncio
async def test_exchange_failure_surfaces_spotify_reason() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "Invalid authorization code"}
        )

    with pytest.raises(UpstreamUnavailableError, match="Invalid authorization code"):
        await _client(handler).exchange_authorization_code("expired")


@pytest.mark.asyncio
async def test_refresh_returns_new_access_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "fresh", "expires_in": 3600})

    access_token, rotated = await _client(handler).refresh_access_token("refresh")

    assert access_token == "fresh"
    assert rotated is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,payload",
    [
        (400, {"error": "invalid_grant", "error_description": "Refresh token revoked"}),
        (401, {"error": "invalid_client"}),
    ],
)
async def test_rejected_refresh_token_signals_auth_expiry(status_code, payload) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    with pytest.raises(UpstreamAuthExpiredError):
        await _client(handler).refresh_access_token("refresh")


@pytest.mark.asyncio
async def test_refresh_server_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        await _client(handler).refresh_access_token("refresh")
    assert not isinstance(excinfo.value, UpstreamAuthExpiredError)


@pytest.mark.asyncio
async def test_currently_playing_204_means_nothing_playing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"] == "Bearer token"
        return httpx.Response(204)

    assert await _client(handler).get_currently_playing("token") is None


@pytest.mark.asyncio
async def test_currently_playing_401_is_auth_expired() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401, json={"error": {"status": 401, "message": "The access token expired"}}
        )

    with pytest.raises(UpstreamAuthExpiredError, match="access token expired"):
        await _client(handler).get_currently_playing("token")


@pytest.mark.asyncio
async def test_network_error_is_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailableError):
        await _client(handler).get_currently_playing("token")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"text": "<html>gateway</html>"},
        {"json": ["not", "an", "object"]},
    ],
)
async def test_malformed_success_bodies_raise_upstream_unavailable(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, **body)

    client = _client(handler)
    with pytest.raises(UpstreamUnavailableError, match="Malformed token payload"):
        await client.exchange_authorization_code("abc")
    with pytest.raises(UpstreamUnavailableError, match="Malformed refresh payload"):
        await client.refresh_access_token("refresh")
    with pytest.raises(UpstreamUnavailableError, match="Malformed playback payload"):
        await client.get_currently_playing("access")
