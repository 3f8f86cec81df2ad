"""
Layer 3: sender roll-ups and the message trace report.
"""

from .models import SenderTotal, TraceReport
from .report_pipeline import MessageTraceReportPipeline

__all__ = ["MessageTraceReportPipeline", "SenderTotal", "TraceReport"]
