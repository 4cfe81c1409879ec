"""Notifier: an owner that publishes state changes through a Dispatcher."""

from __future__ import annotations

import dataclasses
import threading
from typing import TYPE_CHECKING, Any

from lull.config import CoalesceConfig, DebugMode, DelayMode
from lull.diagnostics import FireReport, LoggingSink, advise
from lull.dispatcher import Dispatcher
from lull.policies import dispatch, select

if TYPE_CHECKING:
    from collections.abc import Callable

    from lull.diagnostics import DiagnosticsSink
    from lull.dispatcher import WindowStats
    from lull.timers import Scheduler


def _closed(_argument: Any = None) -> None:
    return None


class Notifier:
    """Publishes state changes, coalescing them according to its config.

    The Notifier holds three independent collaborators: a
    :class:`~lull.dispatcher.Dispatcher`, the ``publisher`` callable that
    does the real work (a UI's "state has changed" hook, a save, a push),
    and a :class:`~lull.diagnostics.DiagnosticsSink`.

    ``delay_mode``, ``delay_interval`` and ``debug_mode`` may be changed at
    any time; the next request picks them up.

    Args:
        publisher: Zero-argument callable invoked on each publication.
        config: Initial configuration. Defaults to ``CoalesceConfig()``
                (no coalescing, 100ms interval, no diagnostics).
        scheduler: Timing primitive handed to the Dispatcher.
        sink: Where diagnostics go. Defaults to a :class:`LoggingSink`.

    Example::

        notifier = Notifier(widget.refresh, config=CoalesceConfig(
            delay_mode=DelayMode.THROTTLE, interval=0.25,
        ))
        for row in rows:
            model.append(row)
            notifier.request_update()
        notifier.close()
    """

    __slots__ = (
        "_closed",
        "_config",
        "_count_lock",
        "_dispatcher",
        "_publish_count",
        "_publisher",
        "_reported_window",
        "_sink",
    )

    def __init__(
        self,
        publisher: Callable[[], Any] | None = None,
        *,
        config: CoalesceConfig | None = None,
        scheduler: Scheduler | None = None,
        sink: DiagnosticsSink | None = None,
    ) -> None:
        self._publisher = publisher
        self._config = config or CoalesceConfig()
        self._dispatcher = Dispatcher(scheduler=scheduler)
        self._sink: DiagnosticsSink = sink or LoggingSink()
        self._publish_count = 0
        self._count_lock = threading.Lock()
        self._reported_window: WindowStats | None = None
        self._closed = False

    @property
    def config(self) -> CoalesceConfig:
        return self._config

    @config.setter
    def config(self, value: CoalesceConfig) -> None:
        self._config = value

    @property
    def delay_mode(self) -> DelayMode:
        return self._config.delay_mode

    @delay_mode.setter
    def delay_mode(self, value: DelayMode) -> None:
        self._config = dataclasses.replace(self._config, delay_mode=value)

    @property
    def delay_interval(self) -> float:
        """Coalescing interval in seconds."""
        return self._config.interval

    @delay_interval.setter
    def delay_interval(self, value: float) -> None:
        self._config = dataclasses.replace(self._config, interval=value)

    @property
    def debug_mode(self) -> DebugMode:
        return self._config.debug_mode

    @debug_mode.setter
    def debug_mode(self, value: DebugMode) -> None:
        self._config = dataclasses.replace(self._config, debug_mode=value)

    @property
    def publisher(self) -> Callable[[], Any] | None:
        return self._publisher

    @publisher.setter
    def publisher(self, value: Callable[[], Any] | None) -> None:
        self._publisher = value

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def sink(self) -> DiagnosticsSink:
        return self._sink

    @property
    def publish_count(self) -> int:
        """Number of publications actually performed."""
        return self._publish_count

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def notify(self) -> Callable[..., None]:
        """The callable to invoke for an update, selected for the current config.

        Evaluated on every read. Once closed, a no-op.
        """
        if self._closed:
            return _closed
        config = self._config
        return select(config.delay_mode, self._dispatcher, config.interval, self._publish)

    def request_update(self) -> None:
        """Request a publication, coalesced according to the current config."""
        if self._closed:
            return
        config = self._config
        dispatch(config.delay_mode, self._dispatcher, config.interval, self._publish)

    def close(self) -> None:
        """Release the Dispatcher. Further requests are dropped (idempotent)."""
        if self._closed:
            return
        self._closed = True
        self._dispatcher.dispose()

    def _publish(self, _argument: Any = None) -> None:
        with self._count_lock:
            self._publish_count += 1
            count = self._publish_count
            # A window not seen before is the one that produced this publication;
            # otherwise the request went straight through.
            window = self._dispatcher.last_window
            if window is self._reported_window:
                window = None
            else:
                self._reported_window = window

        config = self._config
        if config.debug_mode is not DebugMode.OFF:
            self._report(config, count, window)

        publisher = self._publisher
        if publisher is None:
            if config.debug_mode is not DebugMode.OFF:
                self._sink.warn(
                    f"{type(self).__name__} published without a publisher. "
                    "Set `publisher` before requesting updates."
                )
            return

        publisher()

    def _report(self, config: CoalesceConfig, count: int, window: WindowStats | None) -> None:
        if window is None:
            now = self._dispatcher.scheduler.now()
            delay_mode, suppressed, started_at, fired_at = DelayMode.OFF, 0, now, now
        else:
            delay_mode = window.delay_mode
            suppressed, started_at, fired_at = window.suppressed, window.started_at, window.fired_at

        report = FireReport(
            publish_count=count,
            delay_mode=delay_mode,
            interval=config.interval,
            suppressed=suppressed,
            started_at=started_at,
            fired_at=fired_at,
        )
        advice = advise(report) if config.debug_mode is DebugMode.TUNING else None
        self._sink.record(report, advice)

    def __enter__(self) -> Notifier:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Notifier(delay_mode={self._config.delay_mode.value}, "
            f"interval={self._config.interval}, "
            f"debug_mode={self._config.debug_mode.value}, "
            f"publish_count={self._publish_count}, "
            f"closed={self._closed})"
        )
