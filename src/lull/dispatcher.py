"""Dispatcher: coalesces a stream of requests into timed invocations."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from lull.config import DelayMode, normalize_interval
from lull.timers import LoopScheduler

if TYPE_CHECKING:
    from lull.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Action = Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class WindowStats:
    """Snapshot of a coalescing window, taken when it fired.

    Attributes:
        delay_mode: The policy that opened the window.
        suppressed: Requests coalesced away during the window.
        started_at: Scheduler time of the window-opening request.
        fired_at: Scheduler time the window fired.
    """

    delay_mode: DelayMode
    suppressed: int
    started_at: float
    fired_at: float

    @property
    def waited(self) -> float:
        """Seconds between the window opening and firing."""
        return self.fired_at - self.started_at


class _Window:
    __slots__ = ("action", "argument", "delay_mode", "handle", "started_at")

    def __init__(self, delay_mode: DelayMode, action: Action, argument: Any, started_at: float) -> None:
        self.delay_mode = delay_mode
        self.action = action
        self.argument = argument
        self.started_at = started_at
        self.handle: TimerHandle | None = None


def _ensure_callable(action: Any) -> None:
    if not callable(action):
        raise TypeError(f"action must be callable, got {type(action).__name__}")


class Dispatcher:
    """Owns a single pending-timer slot and the bookkeeping around it.

    Two policies share the slot:

    - :meth:`debounce` restarts the window on every request. The action
      fires once, ``interval`` after the last request, with the last
      request's argument.
    - :meth:`throttle` opens a window on the first request and ignores the
      rest until it fires. The action fires ``interval`` after the first
      request, with the first request's argument.

    Example::

        t=0.00 debounce(0.05, render, 1)  -> window opens, fires at 0.05
        t=0.01 debounce(0.05, render, 2)  -> replaced, fires at 0.06
        t=0.06                            -> render(2), suppressed_count -> 0

    All methods are safe to call from any thread. The action runs on the
    scheduler's callback context, outside the Dispatcher's lock, so it may
    call back into the Dispatcher. Faults raised by the action propagate
    into that context; the Dispatcher has already reset its state by then.

    Once disposed, requests are dropped silently.

    Args:
        scheduler: Timing primitive. Defaults to a :class:`LoopScheduler`
                   on the shared background loop thread, resolved on
                   first use so constructing a Dispatcher starts nothing.
    """

    __slots__ = (
        "_disposed",
        "_last_window",
        "_lock",
        "_scheduler",
        "_suppressed",
        "_tasks",
        "_window",
        "_window_started_at",
    )

    def __init__(self, *, scheduler: Scheduler | None = None) -> None:
        self._scheduler: Scheduler | None = scheduler
        self._lock = threading.Lock()
        self._window: _Window | None = None
        self._suppressed = 0
        self._window_started_at: float | None = None
        self._last_window: WindowStats | None = None
        self._disposed = False
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def scheduler(self) -> Scheduler:
        """The timing primitive, resolving the shared default on first use."""
        if self._scheduler is None:
            self._scheduler = LoopScheduler.shared()
        return self._scheduler

    @property
    def suppressed_count(self) -> int:
        """Requests received and not invoked since the last invocation."""
        with self._lock:
            return self._suppressed

    @property
    def window_started_at(self) -> float | None:
        """Scheduler time the current (or most recent) window opened."""
        with self._lock:
            return self._window_started_at

    @property
    def last_window(self) -> WindowStats | None:
        """Stats of the most recently fired window."""
        with self._lock:
            return self._last_window

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._window is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def debounce(self, interval: float, action: Action, argument: Any = None) -> None:
        """Request ``action(argument)``, restarting the window.

        Any pending request is cancelled and counted as suppressed.
        """
        _ensure_callable(action)
        delay = normalize_interval(interval)

        with self._lock:
            if self._disposed:
                logger.debug("debounce after dispose dropped")
                return

            previous = self._window
            if previous is not None:
                if previous.handle is not None:
                    previous.handle.cancel()
                self._window = None
                self._suppressed += 1
                started_at = previous.started_at
            else:
                started_at = self.scheduler.now()
                self._window_started_at = started_at

            self._open(DelayMode.DEBOUNCE, delay, action, argument, started_at)

    def throttle(self, interval: float, action: Action, argument: Any = None) -> None:
        """Request ``action(argument)`` unless a window is already open.

        A request arriving while a window is open is counted as suppressed
        and its action and argument are discarded.
        """
        _ensure_callable(action)
        delay = normalize_interval(interval)

        with self._lock:
            if self._disposed:
                logger.debug("throttle after dispose dropped")
                return

            if self._window is not None:
                self._suppressed += 1
                return

            started_at = self.scheduler.now()
            self._window_started_at = started_at
            self._open(DelayMode.THROTTLE, delay, action, argument, started_at)

    def dispose(self) -> None:
        """Cancel the pending window, if any, and refuse further requests (idempotent)."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            window, self._window = self._window, None
            if window is not None and window.handle is not None:
                window.handle.cancel()

        logger.debug("dispatcher disposed (pending=%s)", window is not None)

    def _open(
        self,
        delay_mode: DelayMode,
        delay: float,
        action: Action,
        argument: Any,
        started_at: float,
    ) -> None:
        # Caller holds self._lock. The window is installed only once its timer
        # is armed, so a failing scheduler leaves the slot empty.
        window = _Window(delay_mode, action, argument, started_at)
        window.handle = self.scheduler.call_later(delay, partial(self._fire, window))
        self._window = window

    def _fire(self, window: _Window) -> None:
        with self._lock:
            if self._window is not window:
                # Superseded or disposed between timer expiry and now.
                return
            self._window = None
            stats = WindowStats(
                delay_mode=window.delay_mode,
                suppressed=self._suppressed,
                started_at=window.started_at,
                fired_at=self.scheduler.now(),
            )
            self._last_window = stats
            self._suppressed = 0

        logger.debug(
            "%s window fired after %.3fs, %d suppressed",
            stats.delay_mode.value,
            stats.waited,
            stats.suppressed,
        )

        result = window.action(window.argument)
        if inspect.isawaitable(result):
            self._spawn(result)

    def _spawn(self, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError(
                "Coroutine actions need a scheduler that fires inside an event loop"
            ) from None

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, *_: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"Dispatcher(pending={self._window is not None}, "
            f"suppressed={self._suppressed}, "
            f"disposed={self._disposed})"
        )
