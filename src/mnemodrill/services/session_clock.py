"""Countdown timer driving a practice session's time budget."""
import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TickListener = Callable[[int], None]
ExpiryListener = Callable[[], None]


class SessionClock:
    """One-second countdown that fires its expiry listeners exactly once."""

    def __init__(self, time_limit_seconds: int, tick_interval: float = 1.0):
        """Initialize the clock with a time budget in seconds."""
        self.time_limit_seconds = time_limit_seconds
        self.tick_interval = tick_interval
        self.remaining = time_limit_seconds
        self.expired = False
        self.cancelled = False
        self._tick_listeners: List[TickListener] = []
        self._expiry_listeners: List[ExpiryListener] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        """Whether the background ticking task is alive."""
        return self._task is not None and not self._task.done()

    def add_listener(
        self,
        on_tick: Optional[TickListener] = None,
        on_expire: Optional[ExpiryListener] = None,
    ) -> None:
        """Register callbacks for ticks and for expiry."""
        if on_tick is not None:
            self._tick_listeners.append(on_tick)
        if on_expire is not None:
            self._expiry_listeners.append(on_expire)

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.running or self.expired or self.cancelled:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug(f"Clock started with {self.remaining}s remaining")

    def tick(self) -> None:
        """Advance the clock by one second."""
        if self.expired or self.cancelled:
            return
        self.remaining = max(0, self.remaining - 1)
        for listener in list(self._tick_listeners):
            listener(self.remaining)
        if self.remaining == 0:
            self._expire()

    def cancel(self) -> None:
        """Stop the clock before expiry; a no-op once expired."""
        if self.expired or self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        self._task = None
        logger.debug(f"Clock cancelled with {self.remaining}s remaining")

    def _expire(self) -> None:
        self.expired = True
        logger.debug("Clock expired")
        for listener in list(self._expiry_listeners):
            listener()

    async def _run(self) -> None:
        while not self.expired and not self.cancelled:
            await asyncio.sleep(self.tick_interval)
            self.tick()
