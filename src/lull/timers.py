"""Timing primitives the Dispatcher schedules its windows on.

A scheduler needs two things: ``call_later(delay, callback)`` returning a
handle with ``cancel()``, and ``now()`` on the same clock. Three are
provided:

- :class:`LoopScheduler` runs timers on an asyncio event loop. Safe to
  call from any thread.
- :class:`ThreadScheduler` runs each timer on its own ``threading.Timer``.
- :class:`ManualScheduler` is a virtual clock advanced by hand, for tests.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
import time
from typing import TYPE_CHECKING, Protocol

from lull._sync import get_shared_loop

if TYPE_CHECKING:
    from collections.abc import Callable


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def now(self) -> float: ...


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class _LoopTimer:
    """Cancellable timer that may be armed and cancelled from any thread."""

    __slots__ = ("_callback", "_done", "_handle", "_lock", "_loop")

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> None:
        self._loop = loop
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._done = False
        self._lock = threading.Lock()

    def arm(self, delay: float) -> None:
        # Always runs on the loop thread.
        with self._lock:
            if self._done:
                return
            self._handle = self._loop.call_later(delay, self._run)

    def _run(self) -> None:
        with self._lock:
            if self._done:
                return
            self._handle = None
            self._done = True
        self._callback()

    def cancel(self) -> None:
        with self._lock:
            if self._done:
                return
            self._done = True
            handle, self._handle = self._handle, None

        if handle is None:
            return
        if _running_loop() is self._loop:
            handle.cancel()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(handle.cancel)


class LoopScheduler:
    """Schedules callbacks on an asyncio event loop.

    Callbacks run on the loop's thread. Scheduling from another thread is
    handed over with ``call_soon_threadsafe``; the returned handle can be
    cancelled immediately either way.

    Args:
        loop: The loop to run timers on.
    """

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @classmethod
    def current(cls) -> LoopScheduler:
        """Scheduler bound to the running event loop."""
        return cls(asyncio.get_running_loop())

    @classmethod
    def shared(cls) -> LoopScheduler:
        """Scheduler bound to the library's shared background loop thread."""
        return cls(get_shared_loop().loop)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _LoopTimer:
        timer = _LoopTimer(self._loop, callback)
        if _running_loop() is self._loop:
            timer.arm(delay)
        else:
            self._loop.call_soon_threadsafe(timer.arm, delay)
        return timer

    def __repr__(self) -> str:
        return f"LoopScheduler(loop={self._loop!r})"


class ThreadScheduler:
    """Schedules each callback on its own daemon ``threading.Timer``."""

    __slots__ = ("_name",)

    def __init__(self, name: str = "lull-timer") -> None:
        self._name = name

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.name = self._name
        timer.daemon = True
        timer.start()
        return timer


class _ManualTimer:
    __slots__ = ("callback", "cancelled", "when")

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock for deterministic tests.

    Nothing fires until :meth:`advance` (or :meth:`run_pending`) is called.
    Due callbacks run in deadline order, on the calling thread, with
    :meth:`now` reporting each callback's own deadline while it runs.

    If a callback raises, the exception propagates out of :meth:`advance`
    and the clock stays at that callback's deadline. Timers due later are
    left queued.

    Example::

        clock = ManualScheduler()
        dispatcher = Dispatcher(scheduler=clock)
        dispatcher.debounce(0.05, print, "hi")
        clock.advance(0.05)  # prints "hi"
    """

    __slots__ = ("_counter", "_lock", "_now", "_queue")

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualTimer]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers scheduled and not yet cancelled or fired."""
        with self._lock:
            return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0.0, delay), callback)
        with self._lock:
            heapq.heappush(self._queue, (timer.when, next(self._counter), timer))
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward by *seconds*, firing every timer that comes due."""
        target = self._now + max(0.0, seconds)
        while True:
            timer = self._pop_due(target)
            if timer is None:
                break
            self._now = timer.when
            timer.callback()
        self._now = target

    def run_pending(self) -> None:
        """Fire every timer already due at the current time."""
        self.advance(0.0)

    def _pop_due(self, target: float) -> _ManualTimer | None:
        with self._lock:
            while self._queue and self._queue[0][0] <= target:
                _, _, timer = heapq.heappop(self._queue)
                if not timer.cancelled:
                    return timer
        return None
