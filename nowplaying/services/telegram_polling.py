"""Long-polling intake of Telegram updates."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional, Set

from pydantic import ValidationError

from nowplaying.clients.telegram import TelegramAPIError, TelegramBotClient
from nowplaying.schemas.telegram import ALLOWED_UPDATES, TelegramUpdate
from nowplaying.services.bot_gateway import NowPlayingBot

logger = logging.getLogger(__name__)


class TelegramPoller:
    """Poll ``getUpdates`` and hand each update to the bot as its own task."""

    def __init__(
        self,
        telegram: TelegramBotClient,
        bot: NowPlayingBot,
        *,
        poll_timeout_seconds: int = 60,
        retry_delay_seconds: float = 5.0,
    ) -> None:
        self._telegram = telegram
        self._bot = bot
        self._poll_timeout = poll_timeout_seconds
        self._retry_delay = retry_delay_seconds
        self._offset: Optional[int] = None
        self._inflight: Set[asyncio.Task] = set()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="telegram-poller")

    async def stop(self) -> None:
        tasks = [task for task in (self._task, *self._inflight) if task is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None

    async def run_forever(self) -> None:
        logger.info("Polling Telegram for updates")
        while True:
            try:
                await self.poll_once()
            except TelegramAPIError:
                logger.warning("Telegram polling failed; retrying", exc_info=True)
                await asyncio.sleep(self._retry_delay)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Unexpected error while polling Telegram")
                await asyncio.sleep(self._retry_delay)

    async def poll_once(self) -> int:
        """Fetch one batch, schedule its updates and return how many arrived."""
        raw_updates = await self._telegram.get_updates(
            offset=self._offset,
            timeout=self._poll_timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        if not isinstance(raw_updates, list):
            raise TelegramAPIError(f"Unexpected getUpdates result: {type(raw_updates).__name__}")
        for raw in raw_updates:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object update: %r", raw)
                continue
            update_id = raw.get("update_id")
            if isinstance(update_id, int):
                self._offset = update_id + 1
            try:
                update = TelegramUpdate.model_validate(raw)
            except ValidationError:
                logger.warning("Skipping malformed update %s", update_id, exc_info=True)
                continue
            task = asyncio.create_task(self._bot.dispatch(update))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
        return len(raw_updates)


__all__ = ["TelegramPoller"]
