"""Periodic background work on the asyncio event loop.

Used to run the rate limiter sweeps and the cache cleanup between requests.
The callback runs on the loop thread, so it never interleaves with a request
handler mid-operation.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Call ``callback`` every ``interval_ms`` until stopped.

    Failures are logged and swallowed; the schedule keeps going.
    """

    def __init__(self, name: str, interval_ms: int, callback: Callable[[], object]) -> None:
        if interval_ms < 1:
            raise ValueError("interval_ms must be >= 1")

        self.name = name
        self.interval_ms = interval_ms
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the task on the running loop. Calling it twice is a no-op."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(
            "periodic_task.started",
            extra={"task": self.name, "interval_ms": self.interval_ms},
        )

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("periodic_task.stopped", extra={"task": self.name})

    def run_once(self) -> None:
        """Invoke the callback now, logging instead of raising on failure."""
        try:
            self._callback()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "periodic_task.failed",
                extra={
                    "task": self.name,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
                exc_info=True,
            )

    async def _run(self) -> None:
        interval = self.interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            self.run_once()
