"""Shared fixtures for lull tests."""

import pytest

from lull.config import CoalesceConfig, DelayMode
from lull.dispatcher import Dispatcher
from lull.timers import ManualScheduler


class Recorder:
    """Action that records ``(clock time, argument)`` for every invocation."""

    def __init__(self, clock: ManualScheduler | None = None) -> None:
        self.clock = clock
        self.calls: list[tuple[float | None, object]] = []

    def __call__(self, argument=None):
        self.calls.append((self.clock.now() if self.clock else None, argument))

    @property
    def arguments(self) -> list[object]:
        return [argument for _, argument in self.calls]

    @property
    def times(self) -> list[float | None]:
        return [when for when, _ in self.calls]


class RecordingSink:
    def __init__(self) -> None:
        self.records = []
        self.warnings: list[str] = []

    def record(self, report, advice) -> None:
        self.records.append((report, advice))

    def warn(self, message: str) -> None:
        self.warnings.append(message)


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def recorder(clock):
    return Recorder(clock)


@pytest.fixture
def dispatcher(clock):
    with Dispatcher(scheduler=clock) as d:
        yield d


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def debounce_config():
    return CoalesceConfig(delay_mode=DelayMode.DEBOUNCE, interval=0.05)


@pytest.fixture
def throttle_config():
    return CoalesceConfig(delay_mode=DelayMode.THROTTLE, interval=0.05)
