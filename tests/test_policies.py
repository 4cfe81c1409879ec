"""Tests for the coalescing policy selector."""

import pytest

from lull.config import DelayMode
from lull.policies import REGISTRY, dispatch, resolve, select


class TestResolve:
    def test_every_mode_registered(self):
        for mode in DelayMode:
            assert mode in REGISTRY

    def test_resolve_accepts_plain_string(self):
        assert resolve("throttle") is REGISTRY[DelayMode.THROTTLE]  # type: ignore[arg-type]

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError, match="Unknown delay mode"):
            resolve("sometimes")  # type: ignore[arg-type]


class TestSelect:
    def test_off_returns_action_itself(self, dispatcher, recorder):
        assert select(DelayMode.OFF, dispatcher, 0.05, recorder) is recorder

    def test_off_passthrough(self, clock, dispatcher, recorder):
        for i in range(5):
            select(DelayMode.OFF, dispatcher, 0.05, recorder)(i)
            assert dispatcher.suppressed_count == 0

        assert recorder.arguments == [0, 1, 2, 3, 4]
        assert not dispatcher.pending
        assert clock.pending == 0

    def test_debounce_routes_to_dispatcher(self, clock, dispatcher, recorder):
        notify = select(DelayMode.DEBOUNCE, dispatcher, 0.05, recorder)
        for i in range(3):
            notify(i)
        assert recorder.calls == []
        assert dispatcher.suppressed_count == 2

        clock.advance(0.1)
        assert recorder.arguments == [2]

    def test_throttle_routes_to_dispatcher(self, clock, dispatcher, recorder):
        notify = select(DelayMode.THROTTLE, dispatcher, 0.05, recorder)
        for i in range(3):
            notify(i)
        clock.advance(0.1)
        assert recorder.arguments == [0]

    def test_wrapper_argument_optional(self, clock, dispatcher, recorder):
        select(DelayMode.DEBOUNCE, dispatcher, 0.05, recorder)()
        clock.advance(0.1)
        assert recorder.arguments == [None]

    def test_unknown_mode_raises_eagerly(self, dispatcher, recorder):
        with pytest.raises(ValueError, match="Unknown delay mode"):
            select("sometimes", dispatcher, 0.05, recorder)  # type: ignore[arg-type]


class TestDispatch:
    def test_mode_resolved_per_call(self, clock, dispatcher, recorder):
        dispatch(DelayMode.THROTTLE, dispatcher, 0.05, recorder, "throttled")
        dispatch(DelayMode.OFF, dispatcher, 0.05, recorder, "immediate")
        assert recorder.arguments == ["immediate"]

        clock.advance(0.1)
        assert recorder.arguments == ["immediate", "throttled"]

    def test_interval_resolved_per_call(self, clock, dispatcher, recorder):
        dispatch(DelayMode.DEBOUNCE, dispatcher, 0.05, recorder, 1)
        dispatch(DelayMode.DEBOUNCE, dispatcher, 0.5, recorder, 2)
        clock.advance(0.1)
        assert recorder.calls == []
        clock.advance(0.5)
        assert recorder.arguments == [2]
