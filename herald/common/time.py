"""Common time utilities."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt

Clock = cabc.Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp used as the default clock."""
    return dt.datetime.now(dt.UTC)
