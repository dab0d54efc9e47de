"""
Staff metric aggregation service.

Runs every aggregator over one window's records and folds the results into
one StaffMetricAggregate per staff member. Records are partitioned by staff
key once per source; the individual aggregators never look at raw rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.features.workforce_analytics.domain.models import (
    AppointmentRecord,
    DailySalesSummary,
    FeedbackResponse,
    LocationConfig,
    PeriodWindow,
    StaffKey,
    StaffMetricAggregate,
    TransactionItemRecord,
    WeeklyPerformanceRow,
)
from app.features.workforce_analytics.pipeline.identity.service import StaffDirectory
from app.infrastructure.observability.logging import get_logger

from .appointments import aggregate_activity, aggregate_rebooks, aggregate_tips
from .capacity import CapacityCalculator
from .common import partition_by_staff, rate_percent
from .feedback import aggregate_feedback
from .retail import aggregate_retail
from .retention import aggregate_retention
from .revenue import RevenueRollup, aggregate_revenue

logger = get_logger(__name__)


@dataclass(slots=True)
class WindowRecords:
    """Everything fetched for one window, already typed."""

    window: PeriodWindow
    appointments: list[AppointmentRecord] = field(default_factory=list)
    transaction_items: list[TransactionItemRecord] = field(default_factory=list)
    daily_sales: list[DailySalesSummary] = field(default_factory=list)
    weekly_metrics: list[WeeklyPerformanceRow] = field(default_factory=list)
    feedback: list[FeedbackResponse] = field(default_factory=list)


@dataclass(slots=True)
class WindowAggregation:
    window: PeriodWindow
    revenue: RevenueRollup
    staff: dict[StaffKey, StaffMetricAggregate]
    eligible_appointments: int = 0


class StaffMetricsAggregator:
    def __init__(self, capacity: CapacityCalculator | None = None):
        self.capacity = capacity or CapacityCalculator()

    def aggregate(
        self,
        records: WindowRecords,
        directory: StaffDirectory,
        locations: list[LocationConfig],
    ) -> WindowAggregation:
        window = records.window

        appointments = partition_by_staff(
            records.appointments, lambda row: row.staff_id, directory, source="appointments"
        )
        items = partition_by_staff(
            records.transaction_items,
            lambda row: row.staff_id,
            directory,
            source="transaction_items",
        )
        weekly = partition_by_staff(
            records.weekly_metrics, lambda row: row.staff_id, directory, source="weekly_metrics"
        )

        revenue = aggregate_revenue(records.daily_sales, directory)
        activity = aggregate_activity(appointments)
        rebooks = aggregate_rebooks(appointments)
        tips = aggregate_tips(appointments)
        retail = aggregate_retail(items)
        utilization = self.capacity.staff_utilization(appointments, locations, window)
        feedback = aggregate_feedback(
            records.feedback,
            directory,
            {staff_id: summary.appointment_count for staff_id, summary in activity.items()},
        )

        staff_ids = sorted(set(revenue.by_staff) | set(appointments.by_staff) | set(items.by_staff))
        retention = aggregate_retention(weekly, window, staff_ids)

        staff: dict[StaffKey, StaffMetricAggregate] = {}
        for staff_id in staff_ids:
            totals = revenue.for_staff(staff_id)
            aggregate = StaffMetricAggregate(
                staff_id=staff_id,
                display_name=directory.display_name(staff_id),
                total_revenue=totals.total_revenue,
                service_revenue=totals.service_revenue,
                product_revenue=totals.product_revenue,
                transaction_count=totals.transaction_count,
                average_ticket=totals.average_ticket,
                days_with_data=totals.days_with_data,
                retail_attachment=rate_percent(totals.product_revenue, totals.total_revenue),
            )

            if staff_id in activity:
                counts = activity[staff_id]
                aggregate.appointment_count = counts.appointment_count
                aggregate.cancelled_count = counts.cancelled_count
                aggregate.no_show_count = counts.no_show_count
                aggregate.appointment_revenue = counts.appointment_revenue
                aggregate.unique_clients = counts.unique_clients

            if staff_id in rebooks:
                aggregate.rebook_count = rebooks[staff_id].rebook_count
                aggregate.rebook_rate = rebooks[staff_id].rebook_rate

            if staff_id in tips:
                tip = tips[staff_id]
                aggregate.tip_total = tip.tip_total
                aggregate.average_tip = tip.average_tip
                aggregate.tipped_percent = tip.tipped_percent
                aggregate.tip_rate = tip.tip_rate

            if staff_id in feedback:
                aggregate.feedback_count = feedback[staff_id].feedback_count
                aggregate.feedback_rate = feedback[staff_id].feedback_rate

            aggregate.retention_rate = retention[staff_id].retention_rate
            aggregate.retention_weeks = retention[staff_id].weeks

            if staff_id in retail:
                aggregate.units_sold = retail[staff_id].units_sold
                aggregate.attached_transaction_rate = retail[staff_id].attached_transaction_rate

            if staff_id in utilization:
                aggregate.booked_hours = utilization[staff_id].booked_hours
                aggregate.available_hours = utilization[staff_id].available_hours
                aggregate.utilization = utilization[staff_id].utilization

            staff[staff_id] = aggregate

        eligible = sum(1 for row in records.appointments if row.is_eligible)
        logger.debug(
            "Window aggregated",
            start_date=window.start_date.isoformat(),
            end_date=window.end_date.isoformat(),
            staff=len(staff),
            appointments=len(records.appointments),
            summaries=len(records.daily_sales),
        )
        return WindowAggregation(
            window=window,
            revenue=revenue,
            staff=staff,
            eligible_appointments=eligible,
        )


staff_metrics_aggregator = StaffMetricsAggregator()
