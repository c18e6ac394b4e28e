"""Trailing-edge debounce built on asyncio tasks."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Run `action` once, `delay` seconds after the last `trigger()`.

    Each trigger cancels the pending run and schedules a new one, so a burst
    of triggers collapses into a single call after the burst goes quiet.
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[None]]):
        self.delay = delay
        self.action = action
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self.action()
        except (OSError, ValueError) as e:
            logger.error("Debounced action failed: %s", e)
        except Exception:
            logger.exception("Unexpected error in debounced action")

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run a pending action immediately instead of waiting out the delay."""
        if not self.pending:
            return
        self.cancel()
        await self.action()
