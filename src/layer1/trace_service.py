"""Clients for the Exchange Online message-trace query."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Protocol, Sequence

import requests

from .config import TraceCollectionConfig
from .models import TraceRow

LOGGER = logging.getLogger(__name__)

ODATA_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class TraceQueryService(Protocol):
    """Anything that can return one page of message-trace rows."""

    def query(
        self,
        start: datetime,
        end: datetime,
        page: int,
        page_size: int,
        sender_address: str | None = None,
    ) -> Sequence[TraceRow]:
        ...


class ReportingWebServiceClient:
    """
    Queries the MessageTrace feed of the Exchange Online reporting web service.

    The session must already carry credentials; this client never authenticates.
    """

    def __init__(self, session: requests.Session, config: TraceCollectionConfig | None = None) -> None:
        self.session = session
        self.config = config or TraceCollectionConfig()
        self.endpoint = f"{self.config.service_url}/MessageTrace"

    def query(
        self,
        start: datetime,
        end: datetime,
        page: int,
        page_size: int,
        sender_address: str | None = None,
    ) -> List[TraceRow]:
        if page < 1:
            raise ValueError(f"page numbers start at 1, got {page}")
        params = {
            "$format": "json",
            "$filter": self._build_filter(start, end, sender_address),
            "$skip": str((page - 1) * page_size),
            "$top": str(page_size),
        }
        LOGGER.debug("Requesting trace page %s (%s - %s)", page, start, end)
        response = self.session.get(
            self.endpoint,
            params=params,
            timeout=self.config.request_timeout_seconds,
        )
        response.raise_for_status()
        return [TraceRow.model_validate(item) for item in self._extract_rows(response.json())]

    @staticmethod
    def _build_filter(start: datetime, end: datetime, sender_address: str | None) -> str:
        clauses = [
            f"StartDate eq datetime'{_odata_datetime(start)}'",
            f"EndDate eq datetime'{_odata_datetime(end)}'",
        ]
        if sender_address:
            escaped = sender_address.replace("'", "''")
            clauses.append(f"SenderAddress eq '{escaped}'")
        return " and ".join(clauses)

    @staticmethod
    def _extract_rows(payload: object) -> list:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            if "value" in payload:
                return payload["value"] or []
            wrapped = payload.get("d")
            if isinstance(wrapped, dict):
                return wrapped.get("results") or []
            if isinstance(wrapped, list):
                return wrapped
        raise ValueError(f"Unexpected MessageTrace payload: {type(payload).__name__}")


def _odata_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(ODATA_DATETIME_FORMAT)
