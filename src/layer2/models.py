"""
Dataclasses produced by the Layer 2 aggregation scans.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

BUCKET_DATE_FORMAT = "%m-%d-%Y"


@dataclass(slots=True)
class HourlyBucket:
    """Recipient count for one sender in one hour of the day."""

    date: str  # MM-dd-yyyy
    hour: int
    sender_address: str
    recipient_count: int = 1
    status: str = ""

    def calendar_date(self) -> datetime:
        return datetime.strptime(self.date, BUCKET_DATE_FORMAT)

    def as_dict(self) -> Dict:
        return {
            "date": self.date,
            "hour": self.hour,
            "sender_address": self.sender_address,
            "recipient_count": self.recipient_count,
            "status": self.status,
        }


@dataclass(slots=True)
class GroupEvent:
    """A distribution group expansion seen in the trace."""

    date: datetime
    sender_address: str
    recipient: str
    status: str
    message_trace_id: str

    def as_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "sender_address": self.sender_address,
            "recipient": self.recipient,
            "status": self.status,
            "message_trace_id": self.message_trace_id,
        }


@dataclass(slots=True)
class AggregationResult:
    """Both scans over the same sorted row set."""

    hourly_buckets: List[HourlyBucket] = field(default_factory=list)
    group_events: List[GroupEvent] = field(default_factory=list)
