"""Configuration helpers for Layer 1 (trace collection)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_SERVICE_URL = "https://reports.office365.com/ecp/reportingwebservice/reporting.svc"


def _env_or_default(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    return int(_env_or_default(name, str(default)))


def _env_optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(slots=True)
class TraceCollectionConfig:
    """Runtime configuration for fetching and reporting message traces."""

    service_url: str = field(default_factory=lambda: _env_or_default("TRACE_SERVICE_URL", DEFAULT_SERVICE_URL))
    page_size: int = field(default_factory=lambda: _env_int("TRACE_PAGE_SIZE", 5000))
    timeout_minutes: int = field(default_factory=lambda: _env_int("TRACE_TIMEOUT_MINUTES", 30))
    retention_days: int = field(default_factory=lambda: _env_int("TRACE_RETENTION_DAYS", 10))
    request_timeout_seconds: int = field(default_factory=lambda: _env_int("TRACE_REQUEST_TIMEOUT", 120))
    sender_address: str | None = field(default_factory=lambda: _env_optional("TRACE_SENDER_ADDRESS"))
    top_senders_limit: int = field(default_factory=lambda: _env_int("TRACE_TOP_SENDERS", 10))

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        self.service_url = self.service_url.rstrip("/")
