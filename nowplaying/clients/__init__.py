"""Expose constructed client wrappers."""

from .song_link import SongLinkClient
from .spotify import SpotifyClient
from .telegram import TelegramAPIError, TelegramBotClient

__all__ = [
    "SongLinkClient",
    "SpotifyClient",
    "TelegramAPIError",
    "TelegramBotClient",
]
