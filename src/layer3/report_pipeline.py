"""Pipeline that fetches message traces and turns them into a TraceReport."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from ..layer1.config import TraceCollectionConfig
from ..layer1.fetcher import ProgressCallback, TraceFetcher
from ..layer1.trace_service import TraceQueryService
from ..layer1.windows import RetentionLimitError, as_utc, ensure_within_retention
from ..layer2.aggregator import TraceAggregator
from .models import TraceReport
from .reporter import build_report

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageTraceReportPipeline:
    """Runs collection, aggregation and reporting once for a date range."""

    def __init__(
        self,
        service: TraceQueryService,
        config: TraceCollectionConfig | None = None,
        fetcher: TraceFetcher | None = None,
        aggregator: TraceAggregator | None = None,
        progress: ProgressCallback | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or TraceCollectionConfig()
        self.clock = clock or _utcnow
        self.fetcher = fetcher or TraceFetcher(service, self.config, progress=progress, clock=self.clock)
        self.aggregator = aggregator or TraceAggregator()

    def run(
        self,
        start: datetime,
        end: datetime,
        sender_address: str | None = None,
        timeout_minutes: int | None = None,
    ) -> TraceReport | None:
        """Return the report, or None when ``start`` is beyond trace retention."""
        start, end = as_utc(start), as_utc(end)
        try:
            ensure_within_retention(start, self.clock(), self.config.retention_days)
        except RetentionLimitError as exc:
            LOGGER.warning("%s Skipping message trace report.", exc)
            return None

        rows = self.fetcher.fetch_all(start, end, sender_address=sender_address, timeout_minutes=timeout_minutes)
        aggregation = self.aggregator.aggregate(rows)
        report = build_report(
            aggregation.hourly_buckets,
            aggregation.group_events,
            top_limit=self.config.top_senders_limit,
        )
        LOGGER.info("Message trace report completed for %s - %s.", start, end)
        return report
