"""Roll hourly buckets up to sender totals and assemble the final report."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..layer2.models import GroupEvent, HourlyBucket
from .models import SenderTotal, TraceReport

LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_SENDERS = 10


def roll_up_sender_totals(buckets: Sequence[HourlyBucket]) -> List[SenderTotal]:
    """
    Sum recipient counts per sender over buckets already grouped by sender.

    Adjacent buckets for the same sender are merged; an empty input yields no totals.
    """
    totals: List[SenderTotal] = []
    for bucket in buckets:
        if totals and totals[-1].sender_address == bucket.sender_address:
            totals[-1].recipient_count += bucket.recipient_count
        else:
            totals.append(SenderTotal(sender_address=bucket.sender_address, recipient_count=bucket.recipient_count))
    return totals


def select_top_senders(totals: Sequence[SenderTotal], limit: int = DEFAULT_TOP_SENDERS) -> List[SenderTotal]:
    """Return up to ``limit`` senders by recipient count (desc); ties keep input order."""
    ranked = sorted(totals, key=lambda total: total.recipient_count, reverse=True)
    return ranked[:limit]


def build_report(
    buckets: Sequence[HourlyBucket],
    group_events: Sequence[GroupEvent],
    top_limit: int = DEFAULT_TOP_SENDERS,
) -> TraceReport:
    totals = roll_up_sender_totals(buckets)
    top_senders = select_top_senders(totals, top_limit)
    hourly_report = sorted(buckets, key=lambda bucket: (bucket.calendar_date(), bucket.hour))
    group_report = sorted(group_events, key=lambda event: event.date)

    LOGGER.info(
        "Report built: %s senders (%s in top list), %s hourly rows, %s group events",
        len(totals),
        len(top_senders),
        len(hourly_report),
        len(group_report),
    )
    return TraceReport(top_senders=top_senders, hourly_report=hourly_report, group_report=group_report)
