import asyncio
from typing import Callable, Optional


class ProgressTicker:
    """
    Cosmetic progress percentage for a long await.

    Used as `async with ProgressTicker(print_fn): await work()`. The ticker
    adds `step` every `interval` seconds, never passes `cap`, and is stopped
    when the block exits whether it succeeded or raised. On success it reports
    100 once.
    """

    def __init__(self, on_tick: Optional[Callable[[int], None]] = None,
                 interval: float = 4.0, step: int = 3, cap: int = 99):
        self.on_tick = on_tick
        self.interval = interval
        self.step = step
        self.cap = cap
        self.progress = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.progress = min(self.progress + self.step, self.cap)
            if self.on_tick:
                self.on_tick(self.progress)

    async def __aenter__(self) -> "ProgressTicker":
        self._task = asyncio.create_task(self._tick())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        if exc_type is None:
            self.progress = 100
            if self.on_tick:
                self.on_tick(self.progress)
        return False
