"""Refresh policy deciding when the cached snapshot is out of date."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from numbers import Real
from typing import Any, Optional

from epsscache.config import DEFAULT_UPDATE_INTERVAL

_LOGGER = logging.getLogger(__name__)


def normalize_interval(value: Any) -> timedelta:
    """Coerce ``value`` into a non-negative refresh interval.

    Accepts a :class:`~datetime.timedelta` or a number of seconds. Anything
    else, including negative durations, falls back to the 24 hour default.
    """

    if value is None:
        return DEFAULT_UPDATE_INTERVAL

    interval: Optional[timedelta] = None
    if isinstance(value, timedelta):
        interval = value
    elif isinstance(value, Real) and not isinstance(value, bool):
        try:
            interval = timedelta(seconds=float(value))
        except (OverflowError, ValueError):
            interval = None

    if interval is None or interval < timedelta(0):
        _LOGGER.warning(
            "Ignoring invalid update interval %r; using %s",
            value,
            DEFAULT_UPDATE_INTERVAL,
        )
        return DEFAULT_UPDATE_INTERVAL
    return interval


class StalenessPolicy:
    """Elapsed-duration staleness check.

    A snapshot is stale once ``now - last_updated`` reaches the interval,
    or when no snapshot was ever committed. A zero interval makes every
    read refresh.
    """

    def __init__(self, interval: Any = None) -> None:
        self._interval = normalize_interval(interval)

    @property
    def interval(self) -> timedelta:
        return self._interval

    def is_stale(
        self,
        last_updated: Optional[datetime],
        now: datetime,
    ) -> bool:
        if last_updated is None:
            return True
        return now - last_updated >= self._interval
