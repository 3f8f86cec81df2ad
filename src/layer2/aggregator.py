"""Hourly recipient counts and group-expansion extraction over sorted trace rows."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from ..layer1.models import RECIPIENT_STATUSES, STATUS_EXPANDED, TraceRow
from .models import BUCKET_DATE_FORMAT, AggregationResult, GroupEvent, HourlyBucket

LOGGER = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class AggregatorConfig:
    """Knobs for the hourly scan."""

    # False keeps the historical behaviour of continuing a bucket on (sender, hour) alone,
    # which merges the same hour on consecutive days for a sender.
    bucket_by_date: bool = field(default_factory=lambda: _env_bool("TRACE_BUCKET_BY_DATE", False))


def trace_sort_key(row: TraceRow) -> Tuple[str, datetime]:
    """Rows are grouped by sender, then ordered by received time."""
    return (row.sender_address, row.received)


def sort_trace_rows(rows: Iterable[TraceRow]) -> List[TraceRow]:
    return sorted(rows, key=trace_sort_key)


def aggregate_hourly(rows: Sequence[TraceRow], bucket_by_date: bool = False) -> List[HourlyBucket]:
    """
    Count Delivered/Failed recipients per sender per hour.

    Expects rows already ordered by ``trace_sort_key``. Each row is compared only
    with the most recently appended bucket: a matching sender and hour-of-day
    extends it, anything else opens a new bucket.

    Args:
        rows: trace rows sorted by sender then received time.
        bucket_by_date: also require the calendar date to match before extending.

    Returns:
        Buckets in the order they were opened.
    """
    buckets: List[HourlyBucket] = []
    for row in rows:
        if row.status not in RECIPIENT_STATUSES:
            continue

        date = row.received.strftime(BUCKET_DATE_FORMAT)
        hour = row.received.hour
        last = buckets[-1] if buckets else None
        if (
            last is not None
            and last.sender_address == row.sender_address
            and last.hour == hour
            and (not bucket_by_date or last.date == date)
        ):
            last.recipient_count += 1
            last.status = row.status
            continue

        buckets.append(
            HourlyBucket(
                date=date,
                hour=hour,
                sender_address=row.sender_address,
                recipient_count=1,
                status=row.status,
            )
        )
    return buckets


def extract_group_events(rows: Iterable[TraceRow]) -> List[GroupEvent]:
    """Project every Expanded row into a GroupEvent, one for one."""
    return [
        GroupEvent(
            date=row.received,
            sender_address=row.sender_address,
            recipient=row.recipient_address,
            status=row.status,
            message_trace_id=row.message_trace_id,
        )
        for row in rows
        if row.status == STATUS_EXPANDED
    ]


class TraceAggregator:
    """Sorts trace rows once and runs the hourly and group scans over them."""

    def __init__(self, config: AggregatorConfig | None = None) -> None:
        self.config = config or AggregatorConfig()

    def aggregate(self, rows: Iterable[TraceRow]) -> AggregationResult:
        ordered = sort_trace_rows(rows)
        buckets = aggregate_hourly(ordered, bucket_by_date=self.config.bucket_by_date)
        group_events = extract_group_events(ordered)
        LOGGER.info(
            "Aggregated %s rows into %s hourly buckets and %s group events",
            len(ordered),
            len(buckets),
            len(group_events),
        )
        return AggregationResult(hourly_buckets=buckets, group_events=group_events)
