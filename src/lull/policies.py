"""Maps each ``DelayMode`` member to the route a request takes through a Dispatcher.

When you add a new mode:

1. Add a variant to the ``DelayMode`` enum in ``config.py``.
2. Add an entry to ``REGISTRY`` pointing to a function that forwards a
   request to the matching :class:`~lull.dispatcher.Dispatcher` method
   (or invokes the action directly).

Nothing here is cached: callers resolve the mode on every request, so a
mode or interval changed at runtime applies to the very next request.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import Any

from lull.config import DelayMode
from lull.dispatcher import Action, Dispatcher

Route = Callable[[Dispatcher, float, Action, Any], None]


def _immediate(dispatcher: Dispatcher, interval: float, action: Action, argument: Any) -> None:
    action(argument)


def _debounce(dispatcher: Dispatcher, interval: float, action: Action, argument: Any) -> None:
    dispatcher.debounce(interval, action, argument)


def _throttle(dispatcher: Dispatcher, interval: float, action: Action, argument: Any) -> None:
    dispatcher.throttle(interval, action, argument)


REGISTRY: dict[DelayMode, Route] = {
    DelayMode.OFF: _immediate,
    DelayMode.DEBOUNCE: _debounce,
    DelayMode.THROTTLE: _throttle,
}


def resolve(mode: DelayMode) -> Route:
    """Resolve *mode* to its route."""
    route = REGISTRY.get(mode)
    if not route:
        raise ValueError(f"Unknown delay mode: {mode!r}. Registered: {', '.join(m.value for m in REGISTRY)}")
    return route


def dispatch(
    mode: DelayMode,
    dispatcher: Dispatcher,
    interval: float,
    action: Action,
    argument: Any = None,
) -> None:
    """Send one request for ``action(argument)`` through the route for *mode*."""
    resolve(mode)(dispatcher, interval, action, argument)


def select(mode: DelayMode, dispatcher: Dispatcher, interval: float, action: Action) -> Callable[..., None]:
    """Return the callable to invoke right now for *mode*.

    ``OFF`` returns *action* itself. The other modes return a wrapper taking
    an optional argument and forwarding it to the matching Dispatcher method.
    """
    if resolve(mode) is _immediate:
        return action
    return partial(dispatch, mode, dispatcher, interval, action)
