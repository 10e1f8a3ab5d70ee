"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Each factory is cached so the callback routes, the bot and the background
tasks all see the same credential store and track cache.
"""

from functools import lru_cache
from urllib.parse import urlencode

from nowplaying.clients import SongLinkClient, SpotifyClient, TelegramBotClient
from nowplaying.core.config import get_settings
from nowplaying.services import (
    CredentialStore,
    LinkResolver,
    MessageFormatter,
    NowPlayingBot,
    TelegramPoller,
    TokenCipherService,
    TokenRefresher,
    TrackCache,
    TrackProvider,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_cipher_service() -> TokenCipherService | None:
    """Provide the at-rest cipher when an encryption secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the process-wide credential store."""
    return CredentialStore(
        _settings().tokens_path, cipher=get_token_cipher_service()
    )


@lru_cache()
def get_track_cache() -> TrackCache:
    """Provide the process-wide track cache."""
    return TrackCache(_settings().scheduling.track_cache_ttl_seconds)


@lru_cache()
def get_spotify_client() -> SpotifyClient:
    """Create a singleton Spotify client."""
    return SpotifyClient(_settings().spotify)


@lru_cache()
def get_song_link_client() -> SongLinkClient:
    return SongLinkClient()


@lru_cache()
def get_link_resolver() -> LinkResolver:
    return LinkResolver(get_song_link_client())


@lru_cache()
def get_track_provider() -> TrackProvider:
    return TrackProvider(get_spotify_client(), get_track_cache())


@lru_cache()
def get_token_refresher() -> TokenRefresher:
    return TokenRefresher(get_credential_store(), get_spotify_client())


@lru_cache()
def get_telegram_client() -> TelegramBotClient:
    """Provide the Bot API client sharing one connection pool."""
    return TelegramBotClient(bot_token=_settings().telegram.bot_token)


@lru_cache()
def get_message_formatter() -> MessageFormatter:
    return MessageFormatter(bot_username=_settings().telegram.bot_username)


def build_authorization_link(user_id: str) -> str:
    """Link sent by /start: via this server when it is public, else straight to Spotify."""
    settings = _settings()
    if settings.public_base_url:
        base = str(settings.public_base_url).rstrip("/")
        return f"{base}/auth/spotify/authorize?{urlencode({'user_id': user_id})}"
    return get_spotify_client().build_authorization_url(state=user_id)


@lru_cache()
def get_bot() -> NowPlayingBot:
    """Provide the Telegram update handler."""
    return NowPlayingBot(
        telegram=get_telegram_client(),
        store=get_credential_store(),
        track_provider=get_track_provider(),
        link_resolver=get_link_resolver(),
        formatter=get_message_formatter(),
        authorization_url=build_authorization_link,
    )


@lru_cache()
def get_telegram_poller() -> TelegramPoller:
    return TelegramPoller(
        get_telegram_client(),
        get_bot(),
        poll_timeout_seconds=_settings().telegram.poll_timeout_seconds,
    )


__all__ = [
    "build_authorization_link",
    "get_bot",
    "get_credential_store",
    "get_link_resolver",
    "get_message_formatter",
    "get_song_link_client",
    "get_spotify_client",
    "get_telegram_client",
    "get_telegram_poller",
    "get_token_cipher_service",
    "get_token_refresher",
    "get_track_cache",
    "get_track_provider",
]
