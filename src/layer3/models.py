"""
Dataclasses for the final message-trace report.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List

from ..layer2.models import GroupEvent, HourlyBucket


@dataclass(slots=True)
class SenderTotal:
    """Recipients reached by one sender across the whole range."""

    sender_address: str
    recipient_count: int

    def as_dict(self) -> Dict:
        return asdict(self)


@dataclass(slots=True)
class TraceReport:
    """The three report views returned to the caller."""

    top_senders: List[SenderTotal] = field(default_factory=list)
    hourly_report: List[HourlyBucket] = field(default_factory=list)
    group_report: List[GroupEvent] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {
            "top_senders": [total.as_dict() for total in self.top_senders],
            "hourly_report": [bucket.as_dict() for bucket in self.hourly_report],
            "group_report": [event.as_dict() for event in self.group_report],
        }
