from __future__ import annotations

import httpx
import pytest

from nowplaying.clients.song_link import SongLinkClient
from nowplaying.services.link_resolver import LinkResolver
from nowplaying.utils.http import RetryConfig


def _client(handler) -> SongLinkClient:
    return SongLinkClient(
        retry_config=RetryConfig(attempts=1, backoff_seconds=0),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_links_are_mapped_per_platform() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["url"])
        return httpx.Response(
            200,
            json={
                "linksByPlatform": {
                    "spotify": {"url": "https://open.spotify.com/track/abc"},
                    "appleMusic": {"url": "https://music.apple.com/abc"},
                    "youtubeMusic": {"url": "https://music.youtube.com/abc"},
                    "deezer": {"url": "https://deezer.com/abc"},
                }
            },
        )

    links = await LinkResolver(_client(handler)).get_platform_links("abc")

    assert seen == ["spotify:track:abc"]
    assert links.spotify == "https://open.spotify.com/track/abc"
    assert links.apple_music == "https://music.apple.com/abc"
    assert links.youtube_music == "https://music.youtube.com/abc"
    assert links.yandex is None
    assert links.youtube is None
    assert links.song_link == "https://song.link/s/abc"


@pytest.mark.asyncio
async def test_failing_lookup_degrades_to_song_link_only() -> None:
    class ExplodingClient:
        async def lookup_spotify_track(self, track_id: str):
            raise RuntimeError("boom")

    links = await LinkResolver(ExplodingClient()).get_platform_links("abc")

    assert links.song_link == "https://song.link/s/abc"
    assert links.model_dump(exclude={"song_link"}, exclude_none=True) == {}


@pytest.mark.asyncio
async def test_http_error_degrades_to_fallback() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    links = await LinkResolver(_client(handler)).get_platform_links("abc")

    assert links.song_link == "https://song.link/s/abc"
    assert links.spotify is None


@pytest.mark.asyncio
async def test_malformed_payload_degrades_to_fallback() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    links = await LinkResolver(_client(handler)).get_platform_links("abc")

    assert links.song_link == "https://song.link/s/abc"
    assert links.apple_music is None


@pytest.mark.asyncio
async def test_partial_platform_entries_are_tolerated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"linksByPlatform": {"spotify": {}, "youtube": {"url": "https://youtu.be/x"}}},
        )

    links = await LinkResolver(_client(handler)).get_platform_links("abc")

    assert links.spotify is None
    assert links.youtube == "https://youtu.be/x"
