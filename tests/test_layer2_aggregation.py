"""Tests for Layer 2: hourly recipient buckets and group expansion events."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from src.layer1.models import TraceRow
from src.layer2.aggregator import (
    AggregatorConfig,
    TraceAggregator,
    aggregate_hourly,
    extract_group_events,
    sort_trace_rows,
)
from src.layer2.models import HourlyBucket

DAY1 = datetime(2026, 10, 14, tzinfo=timezone.utc)
DAY2 = DAY1 + timedelta(days=1)


def at(day, hour, minute=0):
    return day.replace(hour=hour, minute=minute)


def make_row(sender, received, status="Delivered", recipient="r@y.com", trace_id="t"):
    return TraceRow(
        sender_address=sender,
        recipient_address=recipient,
        received=received,
        status=status,
        message_trace_id=trace_id,
    )


@pytest.fixture
def mixed_rows():
    """Unsorted rows across two senders, three statuses and two days."""
    return [
        make_row("b@x.com", at(DAY1, 9, 30), "Failed", trace_id="t1"),
        make_row("a@x.com", at(DAY1, 14, 40), trace_id="t2"),
        make_row("a@x.com", at(DAY1, 14, 5), trace_id="t3"),
        make_row("a@x.com", at(DAY1, 15, 1), "Expanded", recipient="all@x.com", trace_id="t4"),
        make_row("b@x.com", at(DAY1, 9, 10), trace_id="t5"),
        make_row("b@x.com", at(DAY1, 10, 0), "Pending", trace_id="t6"),
        make_row("a@x.com", at(DAY2, 8, 0), "Expanded", recipient="sales@x.com", trace_id="t7"),
        make_row("b@x.com", at(DAY2, 11, 0), trace_id="t8"),
    ]


class TestHourlyAggregation:
    """Adjacent-run bucketing over sorted rows."""

    def test_same_sender_same_hour_counts_together(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 5)),
            make_row("a@x.com", at(DAY1, 14, 40)),
        ]

        buckets = aggregate_hourly(rows)

        assert buckets == [
            HourlyBucket(date="10-14-2026", hour=14, sender_address="a@x.com", recipient_count=2, status="Delivered")
        ]

    def test_same_hour_on_consecutive_days_merges_by_default(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 5)),
            make_row("a@x.com", at(DAY2, 14, 10)),
        ]

        buckets = aggregate_hourly(rows)

        assert len(buckets) == 1
        assert buckets[0].hour == 14
        assert buckets[0].recipient_count == 2
        assert buckets[0].date == "10-14-2026"

    def test_bucket_by_date_separates_days(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 5)),
            make_row("a@x.com", at(DAY2, 14, 10)),
        ]

        buckets = aggregate_hourly(rows, bucket_by_date=True)

        assert [(b.date, b.recipient_count) for b in buckets] == [("10-14-2026", 1), ("10-15-2026", 1)]

    def test_sender_change_opens_new_bucket(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 5)),
            make_row("b@x.com", at(DAY1, 14, 6)),
        ]

        buckets = aggregate_hourly(rows)

        assert [b.sender_address for b in buckets] == ["a@x.com", "b@x.com"]

    def test_only_delivered_and_failed_are_counted(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 1), "Expanded"),
            make_row("a@x.com", at(DAY1, 14, 2), "Pending"),
            make_row("a@x.com", at(DAY1, 14, 3), "Failed"),
            make_row("a@x.com", at(DAY1, 14, 4), "Delivered"),
        ]

        buckets = aggregate_hourly(rows)

        assert len(buckets) == 1
        assert buckets[0].recipient_count == 2
        # status reflects the last row counted into the bucket
        assert buckets[0].status == "Delivered"

    def test_empty_input(self):
        assert aggregate_hourly([]) == []

    def test_rows_without_status_are_ignored(self):
        rows = [
            make_row("a@x.com", at(DAY1, 14, 1), ""),
            make_row("a@x.com", at(DAY1, 14, 2)),
        ]

        assert [b.recipient_count for b in aggregate_hourly(rows)] == [1]
        assert extract_group_events(rows) == []


class TestTraceAggregator:
    """Sorting plus both scans."""

    def test_sorts_by_sender_then_received(self, mixed_rows):
        ordered = sort_trace_rows(mixed_rows)

        assert [r.message_trace_id for r in ordered] == ["t3", "t2", "t4", "t7", "t5", "t1", "t6", "t8"]

    def test_aggregate_unsorted_rows(self, mixed_rows):
        result = TraceAggregator(AggregatorConfig(bucket_by_date=False)).aggregate(mixed_rows)

        assert [(b.sender_address, b.hour, b.recipient_count) for b in result.hourly_buckets] == [
            ("a@x.com", 14, 2),
            ("b@x.com", 9, 2),
            ("b@x.com", 11, 1),
        ]
        assert result.hourly_buckets[1].status == "Failed"

    def test_recipient_count_is_conserved(self, mixed_rows):
        result = TraceAggregator(AggregatorConfig(bucket_by_date=False)).aggregate(mixed_rows)

        counted = sum(1 for r in mixed_rows if r.status in {"Delivered", "Failed"})
        assert sum(b.recipient_count for b in result.hourly_buckets) == counted

    def test_group_events_one_per_expanded_row(self, mixed_rows):
        result = TraceAggregator(AggregatorConfig(bucket_by_date=False)).aggregate(mixed_rows)

        expanded = [r for r in mixed_rows if r.status == "Expanded"]
        assert len(result.group_events) == len(expanded)
        assert [e.recipient for e in result.group_events] == ["all@x.com", "sales@x.com"]
        assert result.group_events[0].date == at(DAY1, 15, 1)
        assert result.group_events[0].message_trace_id == "t4"

    def test_duplicate_expanded_rows_are_not_collapsed(self):
        row = make_row("a@x.com", at(DAY1, 15), "Expanded", recipient="all@x.com")

        assert len(extract_group_events([row, row, row])) == 3

    def test_config_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TRACE_BUCKET_BY_DATE", "true")
        assert AggregatorConfig().bucket_by_date is True

        monkeypatch.delenv("TRACE_BUCKET_BY_DATE")
        assert AggregatorConfig().bucket_by_date is False
