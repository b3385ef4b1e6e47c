"""Process-lifetime, time-windowed de-duplication cache.

A :class:`TimeWindowCache` remembers when each key was last marked and
answers whether that happened within a trailing window. Entries older than
the window are evicted lazily on every access. State is in memory only and is
lost on restart.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ

from herald.common.time import utcnow

if typ.TYPE_CHECKING:
    from herald.common.time import Clock

EVENT_DEDUP_WINDOW = dt.timedelta(minutes=5)
READY_TO_MERGE_DEDUP_WINDOW = dt.timedelta(minutes=30)


class TimeWindowCache:
    """Key to timestamp map with a sliding suppression window.

    Eviction and insertion are serialized by an ``asyncio.Lock``. Two
    concurrent callers may still both observe "not seen" before either marks
    the key; the resulting occasional duplicate is accepted.

    Parameters
    ----------
    window
        Trailing interval during which a marked key counts as recent.
    clock
        Callable returning the current aware UTC time.

    """

    def __init__(self, window: dt.timedelta, *, clock: Clock = utcnow) -> None:
        """Create an empty cache for ``window``."""
        if window <= dt.timedelta(0):
            msg = f"window must be positive, got: {window}"
            raise ValueError(msg)
        self._window = window
        self._clock = clock
        self._entries: dict[str, dt.datetime] = {}
        self._lock = asyncio.Lock()

    @property
    def window(self) -> dt.timedelta:
        """The suppression window."""
        return self._window

    def __len__(self) -> int:
        """Return the number of entries, including not-yet-evicted ones."""
        return len(self._entries)

    def _evict(self, now: dt.datetime) -> None:
        cutoff = now - self._window
        stale = [key for key, seen_at in self._entries.items() if seen_at <= cutoff]
        for key in stale:
            del self._entries[key]

    async def seen_recently(self, key: str) -> bool:
        """Return True when ``key`` was marked within the window."""
        async with self._lock:
            self._evict(self._clock())
            return key in self._entries

    async def check_and_mark(self, key: str) -> bool:
        """Return True if ``key`` is recent, otherwise mark it and return False.

        This is the single-step form used for raw event redelivery checks. A
        duplicate does not refresh the stored timestamp.
        """
        async with self._lock:
            now = self._clock()
            self._evict(now)
            if key in self._entries:
                return True
            self._entries[key] = now
            return False
