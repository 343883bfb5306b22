"""Clocks supplying the current time to the registry.

The registry never samples time on its own: each entry point reads its
clock exactly once and evaluates every expiry comparison of that call
against the single reading.
"""
from __future__ import annotations

import datetime
import threading
from typing import Protocol


class Clock(Protocol):
    """Anything that returns a timezone-aware UTC datetime."""

    def now(self) -> datetime.datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


class ManualClock:
    """A settable clock for tests, simulations and replay.

    The clock is monotonically non-decreasing: attempts to move it
    backwards raise ValueError.

    Parameters
    ----------
    start:
        Initial reading. Naive datetimes are taken to be UTC. Defaults to
        the current wall-clock time.
    """

    def __init__(self, start: datetime.datetime | None = None) -> None:
        if start is None:
            start = datetime.datetime.now(datetime.timezone.utc)
        self._now = _as_utc(start)
        self._lock = threading.Lock()

    def now(self) -> datetime.datetime:
        with self._lock:
            return self._now

    def advance(self, delta: datetime.timedelta) -> datetime.datetime:
        """Move the clock forward by *delta* and return the new reading."""
        if delta < datetime.timedelta(0):
            raise ValueError("ManualClock cannot move backwards.")
        with self._lock:
            self._now = self._now + delta
            return self._now

    def set(self, moment: datetime.datetime) -> None:
        """Jump to *moment*, which must not be earlier than the current reading."""
        moment = _as_utc(moment)
        with self._lock:
            if moment < self._now:
                raise ValueError("ManualClock cannot move backwards.")
            self._now = moment


def _as_utc(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc)
