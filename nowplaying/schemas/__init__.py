"""Public schema exports."""

from .telegram import (
    ALLOWED_UPDATES,
    CallbackQuery,
    InlineQuery,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
)
from .track import AlbumInfo, PlatformLinks, TrackSnapshot

__all__ = [
    "ALLOWED_UPDATES",
    "AlbumInfo",
    "CallbackQuery",
    "InlineQuery",
    "PlatformLinks",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
    "TrackSnapshot",
]
