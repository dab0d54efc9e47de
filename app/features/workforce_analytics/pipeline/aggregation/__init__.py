"""
Aggregation package for workforce analytics.

Pure per-window reductions of typed source records into per-staff metrics.
"""

from .capacity import CapacityCalculator
from .service import (
    StaffMetricsAggregator,
    WindowAggregation,
    WindowRecords,
    staff_metrics_aggregator,
)

__all__ = [
    "CapacityCalculator",
    "StaffMetricsAggregator",
    "WindowAggregation",
    "WindowRecords",
    "staff_metrics_aggregator",
]
