"""Decorator API for coalescing calls to a plain function."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any, NamedTuple, TypeVar, cast, overload

from lull.config import DelayMode
from lull.dispatcher import Dispatcher
from lull.policies import dispatch, resolve
from lull.timers import Scheduler

F = TypeVar("F", bound=Callable[..., Any])


class BoundCall(NamedTuple):
    """The arguments of one call, carried through the Dispatcher as a single value."""

    args: tuple[Any, ...]
    kwargs: dict[str, Any]


def _invoker(fn: Callable[..., Any]) -> Callable[[BoundCall], Any]:
    def invoke(call: BoundCall) -> Any:
        return fn(*call.args, **call.kwargs)

    return invoke


@overload
def coalesce(
    func: F,
    /,
) -> F: ...


@overload
def coalesce(
    *,
    mode: DelayMode = DelayMode.DEBOUNCE,
    interval: float = 0.1,
    scheduler: Scheduler | None = None,
) -> Callable[[F], F]: ...


def coalesce(
    func: F | None = None,
    /,
    *,
    mode: DelayMode = DelayMode.DEBOUNCE,
    interval: float = 0.1,
    scheduler: Scheduler | None = None,
) -> F | Callable[[F], F]:
    """Decorator that coalesces calls to a function.

    Calling the decorated function no longer runs it: the call is handed to
    a private :class:`~lull.dispatcher.Dispatcher` and the original function
    runs later, once per window, with the arguments of the call the policy
    keeps (the last call for debounce, the first for throttle). With
    ``DelayMode.OFF`` every call runs immediately.

    The wrapper always returns ``None``. It exposes the Dispatcher as
    ``.dispatcher`` and its ``.dispose``; after disposal calls are dropped.

    Args:
        func: The function to decorate (when used without parentheses).
        mode: The coalescing policy.
        interval: Window length in seconds.
        scheduler: Timing primitive for the private Dispatcher.

    Examples:
    ```python
        # With parentheses
        @coalesce(mode=DelayMode.THROTTLE, interval=0.5)
        def redraw(frame: int) -> None:
            canvas.draw(frame)

        # Without parentheses (debounce, 100ms)
        @coalesce
        def save(document: Document) -> None:
            document.write()
    ```
    """
    resolve(mode)

    def decorator(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):
            raise TypeError("@coalesce only supports plain functions.")

        dispatcher = Dispatcher(scheduler=scheduler)
        invoke = _invoker(fn)

        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            if dispatcher.disposed:
                return
            dispatch(mode, dispatcher, interval, invoke, BoundCall(args, kwargs))

        wrapper.dispatcher = dispatcher  # type: ignore[attr-defined]
        wrapper.dispose = dispatcher.dispose  # type: ignore[attr-defined]

        return cast("F", wrapper)

    if func is not None:
        return decorator(func)

    return decorator
