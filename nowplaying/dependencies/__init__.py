"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    build_authorization_link,
    get_bot,
    get_credential_store,
    get_link_resolver,
    get_message_formatter,
    get_song_link_client,
    get_spotify_client,
    get_telegram_client,
    get_telegram_poller,
    get_token_cipher_service,
    get_token_refresher,
    get_track_cache,
    get_track_provider,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "build_authorization_link",
    "get_app_settings",
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
