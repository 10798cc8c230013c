import asyncio
import heapq
import itertools
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class ScheduledCall(ABC):
    @abstractmethod
    def cancel(self) -> None:
        pass


class Scheduler(ABC):
    """Runs a callback once after a delay. The returned handle cancels it."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        pass


# ------------------------------------------------
# threading
# ------------------------------------------------

class _TimerCall(ScheduledCall):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _TimerCall(timer)


# ------------------------------------------------
# asyncio
# ------------------------------------------------

class _HandleCall(ScheduledCall):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        loop = self._loop or asyncio.get_running_loop()
        return _HandleCall(loop.call_later(delay, callback))


# ------------------------------------------------
# virtual clock
# ------------------------------------------------

class _ManualCall(ScheduledCall):
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Virtual clock: nothing fires until `advance()` / `run_all()` is called.
    Used for offline frame export and for driving animations in tests.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualCall, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ManualCall()
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), call, callback))
        return call

    @property
    def pending(self) -> int:
        return sum(1 for _, _, call, _ in self._queue if not call.cancelled)

    def next_delay(self) -> Optional[float]:
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0] - self.now

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def step(self) -> bool:
        """Fire the next pending callback. Returns False when nothing is pending."""
        self._drop_cancelled()
        if not self._queue:
            return False
        when, _, _, callback = heapq.heappop(self._queue)
        self.now = max(self.now, when)
        callback()
        return True

    def advance(self, seconds: float) -> int:
        deadline = self.now + seconds
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > deadline:
                break
            self.step()
            fired += 1
        self.now = deadline
        return fired

    def run_all(self, limit: int = 10_000) -> int:
        fired = 0
        while fired < limit and self.step():
            fired += 1
        return fired
