"""Paginated retrieval of message-trace rows, one hourly window at a time."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from .config import TraceCollectionConfig
from .models import TraceRow
from .trace_service import TraceQueryService
from .windows import TimeWindow, split_hourly_windows

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class FetchProgress:
    """Progress snapshot emitted after each hourly window."""

    completed: int
    total: int

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return self.completed / self.total * 100


ProgressCallback = Callable[[FetchProgress], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TraceFetcher:
    """Walks hourly windows and pages through the trace query for each one."""

    def __init__(
        self,
        service: TraceQueryService,
        config: TraceCollectionConfig | None = None,
        progress: ProgressCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.service = service
        self.config = config or TraceCollectionConfig()
        self.progress = progress
        self.clock = clock or _utcnow

    def fetch_all(
        self,
        start: datetime,
        end: datetime,
        sender_address: str | None = None,
        timeout_minutes: int | None = None,
    ) -> List[TraceRow]:
        """Fetch every row between ``start`` and ``end`` across all hourly windows."""
        minutes = self.config.timeout_minutes if timeout_minutes is None else timeout_minutes
        deadline = self.clock() + timedelta(minutes=minutes)
        sender_address = sender_address or self.config.sender_address

        windows = split_hourly_windows(start, end)
        rows: List[TraceRow] = []
        for index, window in enumerate(windows, start=1):
            rows.extend(self.fetch_window(window, deadline, sender_address))
            self._report_progress(FetchProgress(completed=index, total=len(windows)))

        LOGGER.info("Fetched %s trace rows across %s hourly windows", len(rows), len(windows))
        return rows

    def fetch_window(
        self,
        window: TimeWindow,
        deadline: datetime,
        sender_address: str | None = None,
    ) -> List[TraceRow]:
        """
        Page through a single window until a short page arrives or ``deadline`` passes.

        The deadline is checked after each page, so a request already in flight is
        never abandoned. Errors from the service propagate unchanged.
        """
        page_size = self.config.page_size
        rows: List[TraceRow] = []
        page = 1
        while True:
            batch = self.service.query(
                window.start,
                window.end,
                page=page,
                page_size=page_size,
                sender_address=sender_address,
            )
            rows.extend(batch)
            LOGGER.debug("Window %s page %s returned %s rows", window.start, page, len(batch))
            if len(batch) < page_size:
                break
            if self.clock() > deadline:
                LOGGER.debug("Deadline %s passed; stopping window %s after page %s", deadline, window.start, page)
                break
            page += 1
        return rows

    def _report_progress(self, progress: FetchProgress) -> None:
        LOGGER.info(
            "Trace collection %.0f%% complete (%s/%s windows)",
            progress.percent,
            progress.completed,
            progress.total,
        )
        if self.progress is not None:
            self.progress(progress)
