"""Fixed-interval background jobs running on the application's event loop."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``func`` every ``interval_seconds`` until stopped.

    The first run happens one interval after :meth:`start`. Exceptions from a
    run are logged and the schedule continues.
    """

    def __init__(
        self, name: str, interval_seconds: float, func: Callable[[], Any]
    ) -> None:
        self.name = name
        self._interval = interval_seconds
        self._func = func
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(), name=self.name)
        logger.info("Started %s (every %ss)", self.name, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self) -> Any:
        result = self._func()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Background task %s failed", self.name)


__all__ = ["PeriodicTask"]
