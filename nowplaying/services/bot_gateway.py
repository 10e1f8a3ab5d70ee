"""
Telegram update handling: commands, inline queries and the refresh button.

Every handler catches failures at its boundary and answers with one of the
formatter's fixed messages.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from nowplaying.clients.telegram import TelegramAPIError, TelegramBotClient
from nowplaying.core.errors import NotAuthorizedError, NotPlayingError, NowPlayingError
from nowplaying.schemas.telegram import (
    CallbackQuery,
    InlineQuery,
    TelegramMessage,
    TelegramUpdate,
)
from nowplaying.schemas.track import PlatformLinks, TrackSnapshot
from nowplaying.services.credential_store import CredentialStore
from nowplaying.services.link_resolver import LinkResolver
from nowplaying.services.message_formatter import MessageFormatter
from nowplaying.services.track_provider import TrackProvider

logger = logging.getLogger(__name__)

PARSE_MODE = "Markdown"
REFRESH_CALLBACK_DATA = "update_track"
SHARE_BUTTON_TEXT = "🎵 Share Current Track"

BOT_COMMANDS: List[Dict[str, str]] = [
    {"command": "start", "description": "Start and authorize with Spotify"},
    {"command": "help", "description": "Show help message"},
    {"command": "nowplaying", "description": "Share currently playing track"},
]
BOT_DESCRIPTION = "Share your currently playing Spotify track in any chat"
BOT_SHORT_DESCRIPTION = "Share Spotify tracks instantly"

_NOW_PLAYING_PATTERN = re.compile(r"/nowplaying|@nowplaying")
_START_PATTERN = re.compile(r"/start")
_HELP_PATTERN = re.compile(r"/help")

REFRESH_KEYBOARD: Dict[str, Any] = {
    "inline_keyboard": [
        [{"text": "🔄 Refresh Track", "callback_data": REFRESH_CALLBACK_DATA}]
    ]
}
SHARE_KEYBOARD: Dict[str, Any] = {
    "keyboard": [[{"text": SHARE_BUTTON_TEXT}]],
    "resize_keyboard": True,
    "one_time_keyboard": False,
}


def _log_handler_failure(exc: BaseException, *, user_id: str, action: str) -> None:
    if isinstance(exc, (NotAuthorizedError, NotPlayingError)):
        logger.info("%s: %s", action, exc.code, extra={"user_id": user_id})
    elif isinstance(exc, NowPlayingError):
        logger.warning("%s failed: %s", action, exc, extra={"user_id": user_id})
    else:
        logger.error(
            "%s failed unexpectedly", action, exc_info=exc, extra={"user_id": user_id}
        )


class NowPlayingBot:
    """Route Telegram updates to the command, inline and callback handlers."""

    def __init__(
        self,
        *,
        telegram: TelegramBotClient,
        store: CredentialStore,
        track_provider: TrackProvider,
        link_resolver: LinkResolver,
        formatter: MessageFormatter,
        authorization_url: Callable[[str], str],
    ) -> None:
        self._telegram = telegram
        self._store = store
        self._tracks = track_provider
        self._links = link_resolver
        self._formatter = formatter
        self._authorization_url = authorization_url

    async def setup(self) -> None:
        """Register the command list and descriptions shown by Telegram clients."""
        try:
            await self._telegram.set_my_commands(BOT_COMMANDS)
            await self._telegram.set_my_description(BOT_DESCRIPTION)
            await self._telegram.set_my_short_description(BOT_SHORT_DESCRIPTION)
        except TelegramAPIError:
            logger.exception("Error setting up bot")

    async def dispatch(self, update: TelegramUpdate) -> None:
        """Handle a single update; never raises."""
        try:
            if update.inline_query is not None:
                await self.handle_inline_query(update.inline_query)
            elif update.callback_query is not None:
                await self.handle_callback_query(update.callback_query)
            elif update.message is not None:
                await self.handle_message(update.message)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error handling update %s", update.update_id)

    async def handle_message(self, message: TelegramMessage) -> None:
        text = message.text or ""
        if not text or message.from_ is None:
            return
        if _NOW_PLAYING_PATTERN.search(text) or text == SHARE_BUTTON_TEXT:
            await self.handle_now_playing_command(message)
        elif _START_PATTERN.search(text):
            await self.handle_start_command(message)
        elif _HELP_PATTERN.search(text):
            await self.handle_help_command(message)

    async def _resolve_track(self, user_id: str) -> Tuple[TrackSnapshot, PlatformLinks]:
        record = self._store.get(user_id)
        if record is None:
            raise NotAuthorizedError(f"No credentials for user {user_id}.")
        track = await self._tracks.get_current_track(user_id, record.access_token)
        links = await self._links.get_platform_links(track.id)
        return track, links

    async def handle_now_playing_command(self, message: TelegramMessage) -> None:
        chat_id = message.chat.id
        user_id = str(message.from_.id)
        try:
            track, links = await self._resolve_track(user_id)
            text = self._formatter.format_track_message(track, links)
            if track.album.image:
                await self._telegram.send_photo(
                    chat_id,
                    track.album.image,
                    caption=text,
                    parse_mode=PARSE_MODE,
                    reply_to_message_id=message.message_id,
                )
            else:
                await self._telegram.send_message(
                    chat_id,
                    text,
                    parse_mode=PARSE_MODE,
                    reply_to_message_id=message.message_id,
                )
        except Exception as exc:  # pylint: disable=broad-except
            _log_handler_failure(exc, user_id=user_id, action="/nowplaying")
            await self._telegram.send_message(
                chat_id,
                self._formatter.get_error_message(exc, message.chat.is_private),
                reply_to_message_id=message.message_id,
            )

    async def handle_start_command(self, message: TelegramMessage) -> None:
        user_id = str(message.from_.id)
        is_private = message.chat.is_private
        auth_url = self._authorization_url(user_id)
        await self._telegram.send_message(
            message.chat.id,
            self._formatter.get_start_message(auth_url, is_private),
            reply_markup=SHARE_KEYBOARD if is_private else None,
        )

    async def handle_help_command(self, message: TelegramMessage) -> None:
        is_private = message.chat.is_private
        await self._telegram.send_message(
            message.chat.id,
            self._formatter.get_help_message(is_private),
            parse_mode=PARSE_MODE,
            reply_to_message_id=message.message_id,
            reply_markup=SHARE_KEYBOARD if is_private else None,
        )

    async def handle_inline_query(self, query: InlineQuery) -> None:
        user_id = str(query.from_.id)
        try:
            if not self._store.has(user_id):
                await self._answer_unauthorized_inline_query(query)
                return

            track, links = await self._resolve_track(user_id)
            result: Dict[str, Any] = {
                "type": "article",
                "id": "current_track",
                "title": f"🎵 {track.name}",
                "description": track.artists,
                "input_message_content": {
                    "message_text": self._formatter.format_track_message(track, links),
                    "parse_mode": PARSE_MODE,
                    "disable_web_page_preview": False,
                },
                "reply_markup": REFRESH_KEYBOARD,
            }
            if track.album.image:
                result["thumbnail_url"] = track.album.image

            await self._telegram.answer_inline_query(
                query.id, [result], cache_time=1, is_personal=True
            )
        except Exception as exc:  # pylint: disable=broad-except
            _log_handler_failure(exc, user_id=user_id, action="Inline query")
            await self._answer_inline_query_error(query, exc)

    async def _answer_unauthorized_inline_query(self, query: InlineQuery) -> None:
        await self._telegram.answer_inline_query(
            query.id,
            [
                {
                    "type": "article",
                    "id": "auth_required",
                    "title": "🔑 Authorization Required",
                    "description": "Click here to connect Spotify",
                    "input_message_content": {
                        "message_text": (
                            "You need to authorize to share tracks. "
                            "Send /start to the bot in a private message."
                        ),
                        "parse_mode": PARSE_MODE,
                    },
                }
            ],
            cache_time=1,
        )

    async def _answer_inline_query_error(
        self, query: InlineQuery, error: BaseException
    ) -> None:
        not_playing = isinstance(error, NotPlayingError)
        await self._telegram.answer_inline_query(
            query.id,
            [
                {
                    "type": "article",
                    "id": "error",
                    "title": "❌ No Active Track" if not_playing else "❌ Error",
                    "description": (
                        "Play music on Spotify"
                        if not_playing
                        else "Failed to get track information"
                    ),
                    "input_message_content": {
                        "message_text": self._formatter.get_error_message(error),
                        "parse_mode": PARSE_MODE,
                    },
                }
            ],
            cache_time=1,
        )

    async def handle_callback_query(self, callback: CallbackQuery) -> None:
        if callback.data != REFRESH_CALLBACK_DATA:
            return

        user_id = str(callback.from_.id)
        try:
            track, links = await self._resolve_track(user_id)
            text = self._formatter.format_track_message(track, links)
            if callback.inline_message_id:
                await self._edit_inline_message(callback.inline_message_id, text)
            await self._telegram.answer_callback_query(
                callback.id, text="✅ Track information updated!", show_alert=False
            )
        except Exception as exc:  # pylint: disable=broad-except
            _log_handler_failure(exc, user_id=user_id, action="Track refresh")
            await self._telegram.answer_callback_query(
                callback.id,
                text=self._formatter.get_error_message(exc),
                show_alert=True,
            )

    async def _edit_inline_message(self, inline_message_id: str, text: str) -> None:
        try:
            await self._telegram.edit_message_text(
                text,
                inline_message_id=inline_message_id,
                parse_mode=PARSE_MODE,
                disable_web_page_preview=False,
                reply_markup=REFRESH_KEYBOARD,
            )
        except TelegramAPIError as exc:
            # Same track as before: Telegram refuses identical edits.
            if "message is not modified" not in str(exc):
                raise


__all__ = [
    "BOT_COMMANDS",
    "NowPlayingBot",
    "REFRESH_CALLBACK_DATA",
    "REFRESH_KEYBOARD",
    "SHARE_BUTTON_TEXT",
]
