"""Diagnostics reported by a Notifier each time it publishes.

A :class:`DiagnosticsSink` is injected into the owner instead of writing
to a global console, so the Dispatcher's counters can be routed anywhere.
:class:`LoggingSink` is the default and writes to ``logging``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from lull.config import DelayMode

logger = logging.getLogger(__name__)

# Below this a delay is not noticeable to a person.
IMPERCEPTIBLE_MS = 50.0
# At or above this a delay is too long without a waiting indicator.
UNACCEPTABLE_MS = 2000.0
# Throttle windows dropping fewer calls than this would do as well debounced.
FEW_SUPPRESSED = 10


class Advice(StrEnum):
    """Verdict on how well a mode and interval fit the observed traffic."""

    IMPERCEPTIBLE = "imperceptible"
    NOTICEABLE = "noticeable"
    PREFER_DEBOUNCE = "prefer_debounce"
    CONSISTENT = "consistent"
    UNACCEPTABLE = "unacceptable"


@dataclass(frozen=True, slots=True)
class FireReport:
    """One publication, as seen by the diagnostics sink.

    Attributes:
        publish_count: Ordinal of this publication on its owner.
        delay_mode: Mode of the window that produced the publication, OFF
                    when the request went straight through.
        interval: Configured interval in seconds.
        suppressed: Requests coalesced away in the window that fired.
        started_at: Scheduler time the window opened.
        fired_at: Scheduler time of the publication.
    """

    publish_count: int
    delay_mode: DelayMode
    interval: float
    suppressed: int
    started_at: float
    fired_at: float

    @property
    def waited(self) -> float:
        return self.fired_at - self.started_at


def advise(report: FireReport) -> Advice | None:
    """Classify a publication. Returns ``None`` when no coalescing was applied.

    Debounce is judged on how long the window actually waited. Throttle is
    judged on its configured interval, and on how many calls it dropped.
    """
    if report.delay_mode is DelayMode.DEBOUNCE:
        waited_ms = report.waited * 1000.0
        if waited_ms < IMPERCEPTIBLE_MS:
            return Advice.IMPERCEPTIBLE
        if waited_ms < UNACCEPTABLE_MS:
            return Advice.NOTICEABLE
        return Advice.UNACCEPTABLE

    if report.delay_mode is DelayMode.THROTTLE:
        interval_ms = report.interval * 1000.0
        if interval_ms < IMPERCEPTIBLE_MS:
            return Advice.IMPERCEPTIBLE
        if interval_ms < UNACCEPTABLE_MS:
            if report.suppressed < FEW_SUPPRESSED:
                return Advice.PREFER_DEBOUNCE
            return Advice.CONSISTENT
        return Advice.UNACCEPTABLE

    return None


class DiagnosticsSink(Protocol):
    def record(self, report: FireReport, advice: Advice | None) -> None: ...

    def warn(self, message: str) -> None: ...


class LoggingSink:
    """Writes reports to a ``logging`` logger.

    Plain reports go out at DEBUG, reports carrying advice at INFO (WARNING
    when the advice is :attr:`Advice.UNACCEPTABLE`), warnings at WARNING.
    """

    __slots__ = ("_logger",)

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    def record(self, report: FireReport, advice: Advice | None) -> None:
        if advice is None:
            self._logger.debug(
                "publish #%d after %d suppressed (%s)",
                report.publish_count,
                report.suppressed,
                report.delay_mode.value,
            )
            return

        level = logging.WARNING if advice is Advice.UNACCEPTABLE else logging.INFO
        self._logger.log(
            level,
            "publish #%d after %d suppressed: %s waited %.0fms, interval %.0fms -> %s",
            report.publish_count,
            report.suppressed,
            report.delay_mode.value,
            report.waited * 1000.0,
            report.interval * 1000.0,
            advice.value,
        )

    def warn(self, message: str) -> None:
        self._logger.warning(message)
