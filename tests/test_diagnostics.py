"""Tests for publication diagnostics."""

import logging

import pytest

from lull.config import DelayMode
from lull.diagnostics import Advice, FireReport, LoggingSink, advise


def _report(mode, *, interval=0.1, suppressed=0, waited=0.0):
    return FireReport(
        publish_count=1,
        delay_mode=mode,
        interval=interval,
        suppressed=suppressed,
        started_at=10.0,
        fired_at=10.0 + waited,
    )


class TestFireReport:
    def test_waited(self):
        assert _report(DelayMode.DEBOUNCE, waited=0.25).waited == pytest.approx(0.25)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            _report(DelayMode.OFF).suppressed = 3  # type: ignore[misc]


class TestAdviseDebounce:
    @pytest.mark.parametrize(
        ("waited", "expected"),
        [
            (0.0, Advice.IMPERCEPTIBLE),
            (0.049, Advice.IMPERCEPTIBLE),
            (0.05, Advice.NOTICEABLE),
            (1.999, Advice.NOTICEABLE),
            (2.0, Advice.UNACCEPTABLE),
            (5.0, Advice.UNACCEPTABLE),
        ],
    )
    def test_judged_on_waited_time(self, waited, expected):
        assert advise(_report(DelayMode.DEBOUNCE, waited=waited)) is expected

    def test_interval_ignored(self):
        assert advise(_report(DelayMode.DEBOUNCE, interval=10.0, waited=0.01)) is Advice.IMPERCEPTIBLE


class TestAdviseThrottle:
    def test_short_interval_imperceptible(self):
        assert advise(_report(DelayMode.THROTTLE, interval=0.02, suppressed=100)) is Advice.IMPERCEPTIBLE

    def test_few_suppressed_prefers_debounce(self):
        assert advise(_report(DelayMode.THROTTLE, interval=0.5, suppressed=9)) is Advice.PREFER_DEBOUNCE

    def test_many_suppressed_consistent(self):
        assert advise(_report(DelayMode.THROTTLE, interval=0.5, suppressed=10)) is Advice.CONSISTENT

    def test_long_interval_unacceptable(self):
        assert advise(_report(DelayMode.THROTTLE, interval=2.0, suppressed=50)) is Advice.UNACCEPTABLE

    def test_waited_ignored(self):
        assert advise(_report(DelayMode.THROTTLE, interval=0.01, waited=10.0)) is Advice.IMPERCEPTIBLE


class TestAdviseOff:
    def test_no_advice(self):
        assert advise(_report(DelayMode.OFF)) is None


class TestLoggingSink:
    def test_record_without_advice_logs_debug(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="lull.diagnostics"):
            sink.record(_report(DelayMode.DEBOUNCE, suppressed=4), None)

        [record] = caplog.records
        assert record.levelno == logging.DEBUG
        assert "publish #1 after 4 suppressed" in record.getMessage()

    def test_record_with_advice_logs_info(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="lull.diagnostics"):
            sink.record(_report(DelayMode.THROTTLE, interval=0.5, suppressed=20), Advice.CONSISTENT)

        [record] = caplog.records
        assert record.levelno == logging.INFO
        assert "consistent" in record.getMessage()
        assert "interval 500ms" in record.getMessage()

    def test_unacceptable_logs_warning(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="lull.diagnostics"):
            sink.record(_report(DelayMode.DEBOUNCE, waited=3.0), Advice.UNACCEPTABLE)

        [record] = caplog.records
        assert record.levelno == logging.WARNING

    def test_warn(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.WARNING, logger="lull.diagnostics"):
            sink.warn("no publisher")
        assert caplog.messages == ["no publisher"]

    def test_custom_logger(self, caplog):
        sink = LoggingSink(logging.getLogger("app.ui"))
        with caplog.at_level(logging.WARNING, logger="app.ui"):
            sink.warn("custom")
        assert caplog.records[0].name == "app.ui"
