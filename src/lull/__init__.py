"""lull — call coalescing for Python.

Reduces a high-frequency stream of "please run this" requests to a
bounded set of actual invocations, with debounce and throttle policies.

Basic usage:

    from lull import Dispatcher

    dispatcher = Dispatcher()
    for value in readings:
        dispatcher.debounce(0.2, render, value)  # render(last value), once
    dispatcher.dispose()

Owner usage:

    from lull import CoalesceConfig, DelayMode, Notifier

    notifier = Notifier(view.refresh, config=CoalesceConfig(delay_mode=DelayMode.THROTTLE))
    notifier.request_update()

Decorator usage:

    from lull import coalesce

    @coalesce(interval=0.5)
    def save(document) -> None:
        document.write()
"""

from lull.config import CoalesceConfig, DebugMode, DelayMode
from lull.decorator import BoundCall, coalesce
from lull.diagnostics import Advice, DiagnosticsSink, FireReport, LoggingSink, advise
from lull.dispatcher import Dispatcher, WindowStats
from lull.notifier import Notifier
from lull.policies import dispatch, select
from lull.timers import LoopScheduler, ManualScheduler, Scheduler, ThreadScheduler, TimerHandle

__all__ = [
    "Advice",
    "BoundCall",
    "CoalesceConfig",
    "DebugMode",
    "DelayMode",
    "DiagnosticsSink",
    "Dispatcher",
    "FireReport",
    "LoggingSink",
    "LoopScheduler",
    "ManualScheduler",
    "Notifier",
    "Scheduler",
    "ThreadScheduler",
    "TimerHandle",
    "WindowStats",
    "advise",
    "coalesce",
    "dispatch",
    "select",
]

__version__ = "0.1.0"
