"""Time helpers.

We keep stored timestamps naive (no tzinfo) but always in UTC to avoid mixing
offset-aware/naive datetimes while remaining explicit about the timezone.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    """Naive UTC datetime (tzinfo stripped)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MonotonicClock:
    """Store-side clock that never hands out the same timestamp twice.

    Two writes issued one after the other always receive strictly increasing
    timestamps, even when the wall clock has not advanced (or went backwards).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: datetime | None = None

    def now(self) -> datetime:
        with self._lock:
            current = utcnow()
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current
