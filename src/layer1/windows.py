"""Split a reporting range into consecutive one-hour query windows."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List

WINDOW_LENGTH = timedelta(hours=1)


class RetentionLimitError(ValueError):
    """Raised when the requested start lies outside the trace retention period."""


def as_utc(value: datetime) -> datetime:
    """Timestamps without an offset are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """A single [start, end) query slice."""

    start: datetime
    end: datetime


def split_hourly_windows(start: datetime, end: datetime) -> List[TimeWindow]:
    """
    Return ceil(hours(end - start)) consecutive one-hour windows beginning at ``start``.

    The cursor always advances by a full hour, so the final window can extend
    past ``end`` when the range is not a whole number of hours.
    """
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise ValueError(f"start {start.isoformat()} is after end {end.isoformat()}")

    count = math.ceil((end - start) / WINDOW_LENGTH)
    windows: List[TimeWindow] = []
    cursor = start
    for _ in range(count):
        windows.append(TimeWindow(start=cursor, end=cursor + WINDOW_LENGTH))
        cursor += WINDOW_LENGTH
    return windows


def ensure_within_retention(start: datetime, now: datetime, retention_days: int = 10) -> None:
    """Raise RetentionLimitError if ``start`` is older than ``retention_days`` before ``now``."""
    start, now = as_utc(start), as_utc(now)
    oldest = now - timedelta(days=retention_days)
    if start < oldest:
        raise RetentionLimitError(
            f"Start date {start.isoformat()} is more than {retention_days} days before "
            f"{now.isoformat()}; message traces are only retained for {retention_days} days."
        )
