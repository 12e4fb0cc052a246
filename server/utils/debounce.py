import asyncio
import inspect
from typing import Any, Callable, Optional


class Debouncer:
    """
    Run `callback` once input has been quiet for `delay` seconds.

    Each trigger() cancels the pending timer and schedules a new one, so a
    superseded call never fires. Coroutine callbacks are scheduled as tasks.
    Must be used from inside a running event loop.
    """

    def __init__(self, callback: Callable[..., Any], delay: float = 0.25):
        self.callback = callback
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_args: tuple = ()
        self._tasks: set = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending_args = args
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Fire the pending call now instead of waiting out the delay."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()

    def _fire(self) -> None:
        self._handle = None
        result = self.callback(*self._pending_args)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
