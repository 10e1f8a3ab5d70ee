"""Chat-ready texts for tracks, errors, and the /start and /help commands."""

from __future__ import annotations

import re
from typing import Optional, Union

from nowplaying.schemas.track import PlatformLinks, TrackSnapshot

_PLATFORM_NAMES = (
    ("spotify", "Spotify"),
    ("apple_music", "Apple Music"),
    ("yandex", "Yandex Music"),
    ("youtube", "YouTube"),
    ("youtube_music", "YouTube Music"),
)

_MARKDOWN_SPECIALS = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Escape characters that legacy Telegram Markdown treats as markup."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


class MessageFormatter:
    """Render user-facing messages; holds no state beyond the bot's handle."""

    def __init__(self, bot_username: Optional[str] = None) -> None:
        self._bot_username = bot_username.lstrip("@") if bot_username else None

    @property
    def bot_handle(self) -> str:
        return f"@{self._bot_username}" if self._bot_username else "@your_bot_name"

    @staticmethod
    def format_track_message(track: TrackSnapshot, links: PlatformLinks) -> str:
        message = (
            f"🎵 Now Playing: {escape_markdown(track.name)}\n"
            f"👤 Artist: {escape_markdown(track.artists)}\n"
            f"💿 Album: {escape_markdown(track.album.name)}"
        )
        if track.album.release_year:
            message += f" ({track.album.release_year})"

        message += "\n\n🎧 Listen on:\n"
        for field_name, label in _PLATFORM_NAMES:
            url = getattr(links, field_name)
            if url:
                message += f"• [{label}]({url})\n"

        message += f"\n🌐 [Open all options]({links.song_link})"
        return message

    @staticmethod
    def get_error_message(
        error: Union[BaseException, str, None], is_private_chat: bool = False
    ) -> str:
        """Map an error (or its code) to a message that leaks no upstream detail."""
        code = error if isinstance(error, str) else getattr(error, "code", None)
        if code == "not_authorized":
            hint = (
                "Use the /start command"
                if is_private_chat
                else "Open a private chat with the bot and use the /start command"
            )
            return f"Please authorize first. {hint}"
        if code == "not_playing":
            return "Nothing is playing right now. Start playing music on Spotify and try again!"
        return "An error occurred while getting track information. Please try again later."

    def get_help_message(self, is_private_chat: bool) -> str:
        handle = escape_markdown(self.bot_handle)
        share_hint = '• Use the "Share Current Track" button below\n' if is_private_chat else ""
        return f"""🎵 *Quick Guide to Using Music Bot*

*Fastest way to share:*
{share_hint}1️⃣ Type @ in any chat
2️⃣ Select this bot from the list
3️⃣ Click to share current track

*Other methods:*
• Use /nowplaying command
• Mention {handle}
• Type {handle} in any chat

*Tips:*
• Works in private chats, groups and channels
• Shows album art when available
• Includes links to multiple music platforms
• Automatically refreshes authorization

*Need help?*
• /start - Authorize with Spotify
• /help - Show this message
• /nowplaying - Share current track

The bot will remember your Spotify connection, so you only need to authorize once."""

    def get_start_message(self, auth_url: str, is_private_chat: bool) -> str:
        button_hint = "\n4. Use the quick button below" if is_private_chat else ""
        return f"""Hi! To get started, you need to authorize with Spotify.
Click the link below and grant access:
{auth_url}

After authorization, you can use the bot in any chat:
1. Quick share: Just type @ and select the bot
2. Command: /nowplaying
3. Mention: {self.bot_handle}
{button_hint}

Use /help to see all commands and tips"""


__all__ = ["MessageFormatter", "escape_markdown"]
