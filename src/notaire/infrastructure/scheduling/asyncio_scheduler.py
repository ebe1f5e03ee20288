"""
asyncio-backed scheduler.
"""

import asyncio
import inspect
import logging
import time
from typing import Optional, Set

from notaire.domain.services import IScheduler, ITimerHandle
from notaire.domain.services.i_scheduler import TimerCallback

logger = logging.getLogger(__name__)


class AsyncioTimerHandle(ITimerHandle):
    """
    Handle over a loop TimerHandle (one-shot) or a Task (repeating).

    Coroutine runs started by the timer are tracked and cancelled with it.
    """

    def __init__(self, name: str, repeating: bool):
        self.name = name
        self._repeating = repeating
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._runs: Set[asyncio.Task] = set()
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        if self._cancelled:
            return False
        return self._repeating or not self._fired

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        if self._task is not None and self._task is not _current_task():
            self._task.cancel()
        for run in list(self._runs):
            if run is not _current_task():
                run.cancel()

    def _track(self, task: asyncio.Task) -> None:
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class AsyncioScheduler(IScheduler):
    """
    Scheduler on the running event loop.

    Must be used from inside the loop. Callback errors are logged and
    never stop a repeating timer.
    """

    def call_later(
        self, delay: float, callback: TimerCallback, name: Optional[str] = None
    ) -> ITimerHandle:
        handle = AsyncioTimerHandle(name or _callback_name(callback), repeating=False)
        loop = asyncio.get_running_loop()
        handle._timer = loop.call_later(delay, self._fire_once, handle, callback)
        return handle

    def call_every(
        self, interval: float, callback: TimerCallback, name: Optional[str] = None
    ) -> ITimerHandle:
        handle = AsyncioTimerHandle(name or _callback_name(callback), repeating=True)
        handle._task = asyncio.get_running_loop().create_task(
            self._repeat(handle, interval, callback),
            name=f"timer:{handle.name}",
        )
        return handle

    def now(self) -> float:
        return time.time()

    def _fire_once(self, handle: AsyncioTimerHandle, callback: TimerCallback) -> None:
        if handle._cancelled:
            return
        handle._fired = True
        try:
            result = callback()
        except Exception as e:
            logger.error(f"Timer {handle.name} failed: {e}", exc_info=True)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            handle._track(task)
            task.add_done_callback(lambda t: _log_task_error(handle.name, t))

    async def _repeat(
        self, handle: AsyncioTimerHandle, interval: float, callback: TimerCallback
    ) -> None:
        while not handle._cancelled:
            await asyncio.sleep(interval)
            if handle._cancelled:
                return
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Timer {handle.name} failed: {e}", exc_info=True)


def _callback_name(callback: TimerCallback) -> str:
    return getattr(callback, "__name__", repr(callback))


def _log_task_error(name: str, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Timer {name} failed: {error}", exc_info=error)
