"""Keyed debounce for coalescing rapid edits to the same resource"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays a call until its key has been quiet for `delay` seconds.

    Scheduling again under the same key cancels the timer that is still
    waiting, so only the last call is dispatched. A call whose delay already
    elapsed is running and is left alone; callers guard against its late
    response with their own request sequence.

    Usage:
        debouncer = Debouncer(0.5)
        debouncer.schedule("variant-1", store.update_item, "variant-1", 3)
        debouncer.schedule("variant-1", store.update_item, "variant-1", 4)
        # only update_item("variant-1", 4) runs
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._pending: dict[Hashable, asyncio.Task] = {}

    def schedule(
        self,
        key: Hashable,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> asyncio.Task:
        """Schedule func(*args) under key, replacing any waiting call"""
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, func, args))
        self._pending[key] = task
        return task

    async def _run(self, key: Hashable, func: Callable[..., Awaitable[Any]], args: tuple) -> Any:
        await asyncio.sleep(self.delay)
        # Past the delay: the call is now in flight and no longer cancellable by schedule()
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]
        return await func(*args)

    def is_pending(self, key: Hashable) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    def cancel(self, key: Hashable) -> bool:
        """Cancel the waiting call for key, if any"""
        task = self._pending.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug(f"Cancelled superseded call for {key!r}")
        return True

    def cancel_all(self) -> int:
        """Cancel every waiting call"""
        cancelled = 0
        for key in list(self._pending):
            if self.cancel(key):
                cancelled += 1
        return cancelled

    async def flush(self, key: Hashable) -> Optional[Any]:
        """Wait for the call scheduled under key and return its result"""
        task = self._pending.get(key)
        if task is None:
            return None
        return await task
