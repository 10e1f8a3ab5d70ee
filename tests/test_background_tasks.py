from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from nowplaying.clients.telegram import TelegramAPIError
from nowplaying.schemas import TelegramUpdate
from nowplaying.services.scheduler import PeriodicTask
from nowplaying.services.telegram_polling import TelegramPoller


class ScriptedTelegram:
    def __init__(self, batches: List[Any]) -> None:
        self._batches = list(batches)
        self.offsets: List[Any] = []

    async def get_updates(self, *, offset=None, timeout=0, allowed_updates=None):
        await asyncio.sleep(0)
        self.offsets.append(offset)
        batch = self._batches.pop(0) if self._batches else []
        if isinstance(batch, Exception):
            raise batch
        return batch


class CollectingBot:
    def __init__(self) -> None:
        self.updates: List[TelegramUpdate] = []

    async def dispatch(self, update: TelegramUpdate) -> None:
        self.updates.append(update)


def _message(update_id: int, text: str = "/help") -> Dict[str, Any]:
    return {
        "update_id": update_id,
        "message": {"message_id": update_id, "text": text, "chat": {"id": 1}},
    }


@pytest.mark.asyncio
async def test_run_once_supports_sync_and_async_callables() -> None:
    calls: List[str] = []

    async def refresh() -> str:
        calls.append("async")
        return "done"

    assert await PeriodicTask("sync", 1, lambda: calls.append("sync") or 3).run_once() == 3
    assert await PeriodicTask("async", 1, refresh).run_once() == "done"
    assert calls == ["sync", "async"]


@pytest.mark.asyncio
async def test_periodic_task_keeps_running_after_failures() -> None:
    runs: List[int] = []

    def flaky() -> None:
        runs.append(len(runs))
        if len(runs) == 1:
            raise RuntimeError("boom")

    task = PeriodicTask("flaky", 0.01, flaky)
    task.start()
    for _ in range(100):
        if len(runs) >= 3:
            break
        await asyncio.sleep(0.01)
    await task.stop()

    assert len(runs) >= 3
    assert not task.running


@pytest.mark.asyncio
async def test_poll_once_advances_offset_and_dispatches() -> None:
    telegram = ScriptedTelegram([[_message(5), _message(6)], []])
    bot = CollectingBot()
    poller = TelegramPoller(telegram, bot, poll_timeout_seconds=0)

    assert await poller.poll_once() == 2
    await asyncio.sleep(0)
    await poller.poll_once()

    assert telegram.offsets == [None, 7]
    assert [update.update_id for update in bot.updates] == [5, 6]


@pytest.mark.asyncio
async def test_malformed_update_is_skipped_but_acknowledged() -> None:
    malformed = {"update_id": 9, "message": {"text": "no chat"}}
    telegram = ScriptedTelegram([[malformed, _message(10)], []])
    bot = CollectingBot()
    poller = TelegramPoller(telegram, bot, poll_timeout_seconds=0)

    await poller.poll_once()
    await asyncio.sleep(0)
    await poller.poll_once()

    assert [update.update_id for update in bot.updates] == [10]
    assert telegram.offsets[-1] == 11


@pytest.mark.asyncio
async def test_poller_survives_api_errors() -> None:
    telegram = ScriptedTelegram([TelegramAPIError("Bad Gateway"), [_message(1)]])
    bot = CollectingBot()
    poller = TelegramPoller(
        telegram, bot, poll_timeout_seconds=0, retry_delay_seconds=0.01
    )

    poller.start()
    for _ in range(100):
        if bot.updates:
            break
        await asyncio.sleep(0.01)
    await poller.stop()

    assert [update.update_id for update in bot.updates] == [1]


@pytest.mark.asyncio
async def test_poller_survives_unexpected_errors() -> None:
    telegram = ScriptedTelegram([RuntimeError("boom"), None, [_message(4)]])
    bot = CollectingBot()
    poller = TelegramPoller(
        telegram, bot, poll_timeout_seconds=0, retry_delay_seconds=0.01
    )

    poller.start()
    for _ in range(100):
        if bot.updates:
            break
        await asyncio.sleep(0.01)
    await poller.stop()

    assert len(telegram.offsets) >= 3
    assert [update.update_id for update in bot.updates] == [4]


@pytest.mark.asyncio
async def test_non_object_updates_are_skipped() -> None:
    telegram = ScriptedTelegram([["garbage", 17, _message(8)], []])
    bot = CollectingBot()
    poller = TelegramPoller(telegram, bot, poll_timeout_seconds=0)

    await poller.poll_once()
    await asyncio.sleep(0)
    await poller.poll_once()

    assert [update.update_id for update in bot.updates] == [8]
    assert telegram.offsets == [None, 9]
