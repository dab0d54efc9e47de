"""
Appointment-based aggregators: activity counts, rebook rate and tip metrics.

Cancelled and no-show appointments only feed the cancellation counters;
they never enter revenue or any rate denominator.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.features.workforce_analytics.domain.models import AppointmentRecord, StaffKey

from .common import StaffPartition, mean, rate_percent, safe_div


@dataclass(slots=True)
class AppointmentActivity:
    appointment_count: int = 0
    cancelled_count: int = 0
    no_show_count: int = 0
    appointment_revenue: float = 0.0
    unique_clients: int = 0


@dataclass(slots=True)
class RebookMetrics:
    rebook_count: int = 0
    rebook_rate: float = 0.0


@dataclass(slots=True)
class TipMetrics:
    tip_total: float = 0.0
    average_tip: float = 0.0
    tipped_percent: float = 0.0
    # Mean of per-appointment tip/price percentages
    tip_rate: float = 0.0


def summarize_activity(appointments: list[AppointmentRecord]) -> AppointmentActivity:
    activity = AppointmentActivity()
    clients: set[str] = set()
    for appointment in appointments:
        if appointment.is_cancelled:
            activity.cancelled_count += 1
            continue
        if appointment.is_no_show:
            activity.no_show_count += 1
            continue
        activity.appointment_count += 1
        activity.appointment_revenue += appointment.total_price
        if appointment.client_id:
            clients.add(appointment.client_id)
    activity.unique_clients = len(clients)
    return activity


def summarize_rebooks(appointments: list[AppointmentRecord]) -> RebookMetrics:
    eligible = [appointment for appointment in appointments if appointment.is_eligible]
    rebooked = sum(1 for appointment in eligible if appointment.rebooked)
    return RebookMetrics(rebook_count=rebooked, rebook_rate=rate_percent(rebooked, len(eligible)))


def summarize_tips(appointments: list[AppointmentRecord]) -> TipMetrics:
    eligible = [appointment for appointment in appointments if appointment.is_eligible]
    tips = [appointment.tip_amount or 0.0 for appointment in eligible]
    tipped = sum(1 for tip in tips if tip > 0)

    # Appointments without a price have no meaningful ratio and are left out
    ratios = [
        (appointment.tip_amount or 0.0) / appointment.total_price * 100.0
        for appointment in eligible
        if appointment.total_price > 0
    ]

    tip_total = sum(tips)
    return TipMetrics(
        tip_total=tip_total,
        average_tip=safe_div(tip_total, len(eligible)),
        tipped_percent=rate_percent(tipped, len(eligible)),
        tip_rate=max(0.0, mean(ratios) or 0.0),
    )


def aggregate_activity(
    partition: StaffPartition[AppointmentRecord],
) -> dict[StaffKey, AppointmentActivity]:
    return {
        staff_id: summarize_activity(records) for staff_id, records in partition.by_staff.items()
    }


def aggregate_rebooks(
    partition: StaffPartition[AppointmentRecord],
) -> dict[StaffKey, RebookMetrics]:
    return {
        staff_id: summarize_rebooks(records) for staff_id, records in partition.by_staff.items()
    }


def aggregate_tips(partition: StaffPartition[AppointmentRecord]) -> dict[StaffKey, TipMetrics]:
    return {
        staff_id: summarize_tips(records) for staff_id, records in partition.by_staff.items()
    }
