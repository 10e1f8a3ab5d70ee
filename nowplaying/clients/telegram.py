"""Thin async wrapper over the Telegram Bot API methods the bot relies on."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from nowplaying.core.errors import UpstreamUnavailableError

TELEGRAM_API_BASE = "https://api.telegram.org"

logger = logging.getLogger(__name__)


class TelegramAPIError(UpstreamUnavailableError):
    """Raised when the Bot API answers with ``ok: false`` or an HTTP failure."""


def _compact(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class TelegramBotClient:
    """Call Bot API methods over a single long-lived HTTP connection pool."""

    def __init__(
        self,
        *,
        bot_token: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = f"{TELEGRAM_API_BASE}/bot{bot_token}"
        self._timeout = timeout
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def call(
        self,
        method: str,
        payload: Dict[str, Any] | None = None,
        *,
        timeout: httpx.Timeout | float | None = None,
    ) -> Any:
        """Invoke a Bot API method and return its ``result`` field."""
        logger.debug("Calling Telegram %s", method)
        try:
            response = await self._http.post(
                f"{self._base_url}/{method}",
                json=_compact(payload or {}),
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.HTTPError as exc:
            raise TelegramAPIError(f"Telegram {method} request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TelegramAPIError(
                f"Telegram {method} returned a non-JSON response ({response.status_code})"
            ) from exc

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise TelegramAPIError(
                f"Telegram {method} failed: {description or response.status_code}"
            )
        return body.get("result")

    async def get_updates(
        self,
        *,
        offset: Optional[int] = None,
        timeout: int = 60,
        allowed_updates: Iterable[str] | None = None,
    ) -> List[Dict[str, Any]]:
        """Long-poll for new updates; the HTTP read timeout outlives the poll."""
        return await self.call(
            "getUpdates",
            {
                "offset": offset,
                "timeout": timeout,
                "allowed_updates": list(allowed_updates) if allowed_updates else None,
            },
            timeout=httpx.Timeout(self._timeout, read=timeout + self._timeout),
        )

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: Optional[str] = None,
        reply_to_message_id: Optional[int] = None,
        reply_markup: Optional[Dict[str, Any]] = None,
        disable_web_page_preview: Optional[bool] = None,
    ) -> Dict[str, Any]:
        return await self.call(
            "sendMessage",
            {
                "chat_id": chat_id,
                "text": text,
                "parse_mode": parse_mode,
                "reply_to_message_id": reply_to_message_id,
                "reply_markup": reply_markup,
                "disable_web_page_preview": disable_web_page_preview,
            },
        )

    async def send_photo(
        self,
        chat_id: int,
        photo: str,
        *,
        caption: Optional[str] = None,
        parse_mode: Optional[str] = None,
        reply_to_message_id: Optional[int] = None,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self.call(
            "sendPhoto",
            {
                "chat_id": chat_id,
                "photo": photo,
                "caption": caption,
                "parse_mode": parse_mode,
                "reply_to_message_id": reply_to_message_id,
                "reply_markup": reply_markup,
            },
        )

    async def edit_message_text(
        self,
        text: str,
        *,
        inline_message_id: Optional[str] = None,
        chat_id: Optional[int] = None,
        message_id: Optional[int] = None,
        parse_mode: Optional[str] = None,
        disable_web_page_preview: Optional[bool] = None,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self.call(
            "editMessageText",
            {
                "text": text,
                "inline_message_id": inline_message_id,
                "chat_id": chat_id,
                "message_id": message_id,
                "parse_mode": parse_mode,
                "disable_web_page_preview": disable_web_page_preview,
                "reply_markup": reply_markup,
            },
        )

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: List[Dict[str, Any]],
        *,
        cache_time: Optional[int] = None,
        is_personal: Optional[bool] = None,
    ) -> bool:
        return await self.call(
            "answerInlineQuery",
            {
                "inline_query_id": inline_query_id,
                "results": results,
                "cache_time": cache_time,
                "is_personal": is_personal,
            },
        )

    async def answer_callback_query(
        self,
        callback_query_id: str,
        *,
        text: Optional[str] = None,
        show_alert: Optional[bool] = None,
    ) -> bool:
        return await self.call(
            "answerCallbackQuery",
            {
                "callback_query_id": callback_query_id,
                "text": text,
                "show_alert": show_alert,
            },
        )

    async def set_my_commands(self, commands: List[Dict[str, str]]) -> bool:
        return await self.call("setMyCommands", {"commands": commands})

    async def set_my_description(self, description: str) -> bool:
        return await self.call("setMyDescription", {"description": description})

    async def set_my_short_description(self, short_description: str) -> bool:
        return await self.call(
            "setMyShortDescription", {"short_description": short_description}
        )


__all__ = ["TELEGRAM_API_BASE", "TelegramAPIError", "TelegramBotClient"]
