"""
Retention rate from pre-computed weekly performance metrics.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta

from app.features.workforce_analytics.constants import NEUTRAL_RETENTION_RATE
from app.features.workforce_analytics.domain.models import (
    PeriodWindow,
    StaffKey,
    WeeklyPerformanceRow,
)

from .common import StaffPartition, clamp, mean


@dataclass(slots=True)
class RetentionMetrics:
    retention_rate: float = NEUTRAL_RETENTION_RATE
    weeks: int = 0


def week_intersects(row: WeeklyPerformanceRow, window: PeriodWindow) -> bool:
    return row.week_start <= window.end_date and (
        row.week_start + timedelta(days=6) >= window.start_date
    )


def aggregate_retention(
    partition: StaffPartition[WeeklyPerformanceRow],
    window: PeriodWindow,
    staff_ids: Iterable[StaffKey],
) -> dict[StaffKey, RetentionMetrics]:
    """
    Unweighted mean of weekly retention rates for weeks touching the window.

    Staff without any usable weekly row get NEUTRAL_RETENTION_RATE.
    """
    metrics: dict[StaffKey, RetentionMetrics] = {}
    for staff_id in staff_ids:
        rates = [
            row.retention_rate
            for row in partition.records_for(staff_id)
            if row.retention_rate is not None and week_intersects(row, window)
        ]
        average = mean(rates)
        if average is None:
            metrics[staff_id] = RetentionMetrics()
        else:
            metrics[staff_id] = RetentionMetrics(retention_rate=clamp(average), weeks=len(rates))
    return metrics
