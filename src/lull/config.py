"""Configuration types for the lull library."""

import math
from dataclasses import dataclass
from enum import StrEnum


class DelayMode(StrEnum):
    """Available coalescing policies.

    OFF:      Every request invokes the action immediately.
    DEBOUNCE: Fire once, ``interval`` after the last request in a burst,
              with the last request's argument.
    THROTTLE: Fire at most once per ``interval``, with the argument of the
              request that opened the window.
    """

    OFF = "off"
    DEBOUNCE = "debounce"
    THROTTLE = "throttle"


class DebugMode(StrEnum):
    """How much the owner reports about each publication.

    OFF:     Nothing.
    VERBOSE: One diagnostics record per publication.
    TUNING:  Like VERBOSE, plus advice on whether the interval fits.
    """

    OFF = "off"
    VERBOSE = "verbose"
    TUNING = "tuning"


def normalize_interval(interval: float) -> float:
    """Clamp *interval* to a non-negative, finite number of seconds.

    Zero, negative and non-finite values all become ``0.0`` so that a
    misconfigured interval degrades to "fire as soon as possible".
    Infinity is treated as misconfiguration too, not as "never": a
    ``threading.Timer`` rejects an infinite delay, and a window that never fires
    would swallow every request after it. Use ``dispose()`` to stop firing.
    """
    interval = float(interval)
    if not math.isfinite(interval) or interval < 0:
        return 0.0
    return interval


@dataclass(frozen=True, slots=True)
class CoalesceConfig:
    """Configuration for a Notifier instance.

    Attributes:
        delay_mode: The coalescing policy to apply to publications.
        interval: Coalescing window in seconds. Normalized with
                  :func:`normalize_interval`, never rejected.
        debug_mode: How much to report to the diagnostics sink.
    """

    delay_mode: DelayMode = DelayMode.OFF
    interval: float = 0.1
    debug_mode: DebugMode = DebugMode.OFF

    def __post_init__(self) -> None:
        try:
            mode = DelayMode(self.delay_mode)
        except ValueError:
            raise ValueError(f"Unknown delay mode: {self.delay_mode!r}") from None

        try:
            debug = DebugMode(self.debug_mode)
        except ValueError:
            raise ValueError(f"Unknown debug mode: {self.debug_mode!r}") from None

        object.__setattr__(self, "delay_mode", mode)
        object.__setattr__(self, "debug_mode", debug)
        object.__setattr__(self, "interval", normalize_interval(self.interval))
