"""Pydantic representation of message-trace rows returned by Exchange Online."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

STATUS_DELIVERED: Final = "Delivered"
STATUS_FAILED: Final = "Failed"
STATUS_EXPANDED: Final = "Expanded"

RECIPIENT_STATUSES: Final = frozenset({STATUS_DELIVERED, STATUS_FAILED})

ODATA_DATE_PATTERN: Final = re.compile(r"^/Date\((-?\d+)(?:[+-]\d{4})?\)/$")


class TraceRow(BaseModel):
    """One message-trace record. Immutable once validated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    sender_address: str = Field(alias="SenderAddress", default="")
    recipient_address: str = Field(alias="RecipientAddress", default="")
    received: datetime = Field(alias="Received")
    status: str = Field(alias="Status", default="")
    message_trace_id: str = Field(alias="MessageTraceId", default="")
    message_id: str | None = Field(alias="MessageId", default=None)
    subject: str | None = Field(alias="Subject", default=None)
    size: int | None = Field(alias="Size", default=None)
    from_ip: str | None = Field(alias="FromIP", default=None)
    to_ip: str | None = Field(alias="ToIP", default=None)

    @field_validator("sender_address", "recipient_address", "status", "message_trace_id", mode="before")
    @classmethod
    def _ensure_str(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("received", mode="before")
    @classmethod
    def _parse_received(cls, value: object) -> datetime:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str):
            match = ODATA_DATE_PATTERN.match(value.strip())
            if match:
                return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)
            try:
                parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError as exc:
                raise ValueError(f"Invalid datetime string: {value}") from exc
        else:
            raise ValueError("Unsupported date format")
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> dict:
        """Return a JSON-friendly dict keyed by the service's field names."""
        payload = self.model_dump(by_alias=True)
        payload["Received"] = self.received.isoformat()
        return payload
