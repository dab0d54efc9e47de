"""
Capacity and utilization.

Available hours come from each location's weekday hours table, minus
breaks, times its stylist capacity. Booked hours come from appointment
start/end times. Defaults for unconfigured locations are read from settings.

Report utilization is not clamped so overbooked days read above 100;
per-staff utilization is a rate and stays in [0, 100].
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from app.config import settings
from app.features.workforce_analytics.constants import (
    DEFAULT_APPOINTMENT_HOURS,
    UNCATEGORIZED_SERVICE,
)
from app.features.workforce_analytics.domain.models import (
    AppointmentRecord,
    CapacityBreakdown,
    CapacityReport,
    DayCapacity,
    LocationConfig,
    PeriodWindow,
    ServiceMixItem,
    StaffKey,
)

from .common import StaffPartition, mean, rate_percent, safe_div

DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_clock(value: str | None) -> float | None:
    """Parse ``HH:MM`` into fractional hours; None when unusable."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return hours + minutes / 60.0


def appointment_hours(appointment: AppointmentRecord) -> float:
    if appointment.start_time is None or appointment.end_time is None:
        return DEFAULT_APPOINTMENT_HOURS
    start = datetime.combine(date.min, appointment.start_time)
    end = datetime.combine(date.min, appointment.end_time)
    duration = (end - start).total_seconds() / 3600.0
    if duration <= 0:
        return DEFAULT_APPOINTMENT_HOURS
    return duration


def service_category(appointment: AppointmentRecord) -> str:
    """Category column first, then the service name itself."""
    for value in (appointment.service_category, appointment.service_name):
        if value and value.strip():
            return value.strip()
    return UNCATEGORIZED_SERVICE


@dataclass(slots=True)
class _MixTotals:
    hours: float = 0.0
    revenue: float = 0.0
    count: int = 0


def _mix_items(totals: dict[str, _MixTotals], booked_hours: float) -> list[ServiceMixItem]:
    items = [
        ServiceMixItem(
            category=category,
            hours=entry.hours,
            revenue=entry.revenue,
            appointment_count=entry.count,
            percentage=safe_div(entry.hours, booked_hours) * 100,
        )
        for category, entry in totals.items()
    ]
    items.sort(key=lambda item: (-item.hours, item.category))
    return items


@dataclass(slots=True)
class _DayTotals:
    booked_hours: float = 0.0
    revenue: float = 0.0
    count: int = 0
    mix: dict[str, _MixTotals] = field(default_factory=dict)

    def add(self, appointment: AppointmentRecord) -> None:
        hours = appointment_hours(appointment)
        self.booked_hours += hours
        self.revenue += appointment.total_price
        self.count += 1
        entry = self.mix.setdefault(service_category(appointment), _MixTotals())
        entry.hours += hours
        entry.revenue += appointment.total_price
        entry.count += 1


@dataclass(slots=True)
class StaffUtilization:
    booked_hours: float = 0.0
    available_hours: float = 0.0
    utilization: float = 0.0


class CapacityCalculator:
    def __init__(
        self,
        default_operating_hours: float | None = None,
        default_stylist_capacity: int | None = None,
    ):
        self.default_operating_hours = (
            default_operating_hours
            if default_operating_hours is not None
            else settings.ANALYTICS_DEFAULT_OPERATING_HOURS
        )
        self.default_stylist_capacity = (
            default_stylist_capacity
            if default_stylist_capacity is not None
            else settings.ANALYTICS_DEFAULT_STYLIST_CAPACITY
        )

    def gross_hours(self, location: LocationConfig, day: date) -> float:
        if location.hours is None:
            return self.default_operating_hours

        entry = location.hours.get(DAY_NAMES[day.weekday()])
        if entry is None or entry.closed:
            return 0.0
        opens, closes = parse_clock(entry.open), parse_clock(entry.close)
        if opens is None or closes is None:
            return 0.0
        return max(0.0, closes - opens)

    def effective_hours(self, location: LocationConfig, day: date) -> float:
        gross = self.gross_hours(location, day)
        if gross == 0:
            return 0.0
        non_productive = (location.break_minutes + location.lunch_minutes) / 60.0
        return max(0.0, gross - non_productive)

    def stylist_capacity(self, location: LocationConfig) -> int:
        if location.stylist_capacity is None:
            return self.default_stylist_capacity
        return location.stylist_capacity

    def available_hours(self, locations: Sequence[LocationConfig], day: date) -> float:
        return sum(
            self.effective_hours(location, day) * self.stylist_capacity(location)
            for location in locations
        )

    def per_stylist_hours(self, locations: Sequence[LocationConfig], window: PeriodWindow) -> float:
        """Hours one stylist could work across the window at the matched locations."""
        if not locations:
            return 0.0
        return sum(
            mean(self.effective_hours(location, day) for location in locations) or 0.0
            for day in window.dates()
        )

    def breakdown(
        self, locations: Sequence[LocationConfig], window: PeriodWindow
    ) -> CapacityBreakdown:
        gross = self.default_operating_hours
        if locations:
            # Sample the first open weekday of the first location
            sample = locations[0]
            week = [window.start_date + timedelta(days=offset) for offset in range(7)]
            gross = next(
                (hours for hours in (self.gross_hours(sample, day) for day in week) if hours > 0),
                self.default_operating_hours,
            )
        return CapacityBreakdown(
            gross_hours_per_stylist=gross,
            break_minutes=mean(location.break_minutes for location in locations) or 0.0,
            lunch_minutes=mean(location.lunch_minutes for location in locations) or 0.0,
            padding_minutes=mean(location.padding_minutes for location in locations) or 0.0,
            stylist_count=sum(self.stylist_capacity(location) for location in locations),
            days_in_period=window.days,
        )

    def build_report(
        self,
        window: PeriodWindow,
        locations: Sequence[LocationConfig],
        appointments: Iterable[AppointmentRecord],
    ) -> CapacityReport:
        by_day: dict[date, _DayTotals] = {}
        for appointment in appointments:
            day = appointment.appointment_date
            if not appointment.is_eligible or not window.contains(day):
                continue
            by_day.setdefault(day, _DayTotals()).add(appointment)

        days: list[DayCapacity] = []
        overall_mix: dict[str, _MixTotals] = {}
        for day in window.dates():
            available = self.available_hours(locations, day)
            totals = by_day.get(day, _DayTotals())
            days.append(
                DayCapacity(
                    day=day,
                    day_name=DAY_NAMES[day.weekday()][:3].title(),
                    available_hours=available,
                    booked_hours=totals.booked_hours,
                    utilization_percent=safe_div(totals.booked_hours, available) * 100,
                    gap_hours=max(0.0, available - totals.booked_hours),
                    revenue=totals.revenue,
                    appointment_count=totals.count,
                    service_mix=_mix_items(totals.mix, totals.booked_hours),
                )
            )
            for category, entry in totals.mix.items():
                combined = overall_mix.setdefault(category, _MixTotals())
                combined.hours += entry.hours
                combined.revenue += entry.revenue
                combined.count += entry.count

        total_available = sum(day.available_hours for day in days)
        total_booked = sum(day.booked_hours for day in days)
        total_revenue = sum(day.revenue for day in days)
        total_gap = max(0.0, total_available - total_booked)
        average_hourly_revenue = safe_div(total_revenue, total_booked)

        # Closed days have no capacity to be busy or idle
        open_days = [day for day in days if day.available_hours > 0]
        peak_day = max(open_days, key=lambda day: day.utilization_percent, default=None)
        low_day = min(open_days, key=lambda day: day.utilization_percent, default=None)
        breakdown = self.breakdown(locations, window)

        return CapacityReport(
            window=window,
            days=days,
            total_available_hours=total_available,
            total_booked_hours=total_booked,
            total_gap_hours=total_gap,
            overall_utilization=safe_div(total_booked, total_available) * 100,
            total_revenue=total_revenue,
            total_appointments=sum(day.appointment_count for day in days),
            average_hourly_revenue=average_hourly_revenue,
            gap_revenue=total_gap * average_hourly_revenue,
            stylist_count=breakdown.stylist_count,
            peak_day=peak_day,
            low_day=low_day,
            service_mix=_mix_items(overall_mix, total_booked),
            breakdown=breakdown,
        )

    def staff_utilization(
        self,
        partition: StaffPartition[AppointmentRecord],
        locations: Sequence[LocationConfig],
        window: PeriodWindow,
    ) -> dict[StaffKey, StaffUtilization]:
        available = self.per_stylist_hours(locations, window)
        metrics: dict[StaffKey, StaffUtilization] = {}
        for staff_id, records in partition.by_staff.items():
            booked = sum(
                appointment_hours(record)
                for record in records
                if record.is_eligible and window.contains(record.appointment_date)
            )
            metrics[staff_id] = StaffUtilization(
                booked_hours=booked,
                available_hours=available,
                utilization=rate_percent(booked, available),
            )
        return metrics
