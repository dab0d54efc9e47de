"""
Domain subpackage for workforce analytics.
"""

from .models import (
    AppointmentRecord,
    CapacityReport,
    CompositeScoreResult,
    DailySalesSummary,
    PeriodWindow,
    StaffIdentity,
    StaffMetricAggregate,
    StaffPerformanceReport,
    ThresholdEvaluation,
    ThresholdPolicy,
)

__all__ = [
    "AppointmentRecord",
    "CapacityReport",
    "CompositeScoreResult",
    "DailySalesSummary",
    "PeriodWindow",
    "StaffIdentity",
    "StaffMetricAggregate",
    "StaffPerformanceReport",
    "ThresholdEvaluation",
    "ThresholdPolicy",
]
