"""
Domain models for the workforce analytics engine.

Source rows are typed once by the repository layer and keyed by a single
canonical staff key (the external POS staff id). Everything here is a
transient view model built per request; nothing is persisted by the engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from app.features.workforce_analytics.constants import (
    CANCELLED_STATUSES,
    DEFAULT_APPOINTMENT_PADDING_MINUTES,
    EVALUATION_PERIOD_CHOICES,
    EXCLUDED_STATUSES,
    NO_SHOW_STATUSES,
    PRODUCT_ITEM_TYPES,
    SERVICE_ITEM_TYPES,
)

StaffKey = str


def serialize(value: Any) -> Any:
    """Convert nested dataclasses/dates into JSON-ready primitives."""
    if is_dataclass(value) and not isinstance(value, type):
        return serialize(asdict(value))
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [serialize(item) for item in value]
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class PeriodWindow:
    """Inclusive calendar-date range with an optional equal-length prior window."""

    start_date: date
    end_date: date
    prior: PeriodWindow | None = None

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError(
                f"Window end {self.end_date.isoformat()} precedes start {self.start_date.isoformat()}"
            )

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def dates(self) -> list[date]:
        return [self.start_date + timedelta(days=offset) for offset in range(self.days)]

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


# ---------------------------------------------------------------------------
# Source rows
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class AppointmentRecord:
    appointment_id: str | None
    staff_id: StaffKey | None
    location_id: str | None
    appointment_date: date
    start_time: time | None
    end_time: time | None
    total_price: float
    status: str
    tip_amount: float | None = None
    rebooked: bool | None = None
    client_id: str | None = None
    service_name: str | None = None
    service_category: str | None = None

    @property
    def normalized_status(self) -> str:
        return (self.status or "").strip().lower()

    @property
    def is_cancelled(self) -> bool:
        return self.normalized_status in CANCELLED_STATUSES

    @property
    def is_no_show(self) -> bool:
        return self.normalized_status in NO_SHOW_STATUSES

    @property
    def is_eligible(self) -> bool:
        """Counts toward revenue and rate denominators."""
        return self.normalized_status not in EXCLUDED_STATUSES


@dataclass(slots=True)
class TransactionItemRecord:
    transaction_id: str | None
    staff_id: StaffKey | None
    transaction_date: date
    item_type: str
    quantity: int
    total_amount: float
    location_id: str | None = None

    @property
    def is_product(self) -> bool:
        return (self.item_type or "").strip().lower() in PRODUCT_ITEM_TYPES

    @property
    def is_service(self) -> bool:
        return (self.item_type or "").strip().lower() in SERVICE_ITEM_TYPES


@dataclass(slots=True)
class DailySalesSummary:
    staff_id: StaffKey | None
    user_id: str | None
    location_id: str | None
    summary_date: date
    total_revenue: float
    service_revenue: float
    product_revenue: float
    total_transactions: int


@dataclass(slots=True)
class WeeklyPerformanceRow:
    staff_id: StaffKey | None
    week_start: date
    retention_rate: float | None
    rebooking_rate: float | None = None


@dataclass(slots=True)
class FeedbackResponse:
    staff_user_id: str | None
    responded_at: datetime | None


@dataclass(slots=True, frozen=True)
class DayHours:
    open: str | None
    close: str | None
    closed: bool = False


@dataclass(slots=True)
class LocationConfig:
    location_id: str
    name: str | None
    # None means the location never configured hours
    hours: dict[str, DayHours] | None
    stylist_capacity: int | None
    break_minutes: int = 0
    lunch_minutes: int = 0
    padding_minutes: int = DEFAULT_APPOINTMENT_PADDING_MINUTES


@dataclass(slots=True)
class StaffMappingRow:
    external_id: StaffKey
    user_id: str | None
    external_name: str | None
    is_active: bool = True


@dataclass(slots=True)
class EmployeeProfileRow:
    user_id: str
    full_name: str | None
    display_name: str | None
    photo_url: str | None
    is_active: bool = True


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class StaffIdentity:
    external_id: StaffKey
    user_id: str | None
    display_name: str
    photo_url: str | None


@dataclass(slots=True)
class StaffMetricAggregate:
    """Per-staff reduction of one window. Rates are percentages in [0, 100]."""

    staff_id: StaffKey
    display_name: str
    total_revenue: float = 0.0
    service_revenue: float = 0.0
    product_revenue: float = 0.0
    transaction_count: int = 0
    average_ticket: float = 0.0
    appointment_count: int = 0
    cancelled_count: int = 0
    no_show_count: int = 0
    appointment_revenue: float = 0.0
    unique_clients: int = 0
    rebook_count: int = 0
    rebook_rate: float = 0.0
    tip_total: float = 0.0
    average_tip: float = 0.0
    tipped_percent: float = 0.0
    tip_rate: float = 0.0
    feedback_count: int = 0
    feedback_rate: float = 0.0
    retention_rate: float = 0.0
    retention_weeks: int = 0
    retail_attachment: float = 0.0
    attached_transaction_rate: float = 0.0
    units_sold: int = 0
    booked_hours: float = 0.0
    available_hours: float = 0.0
    utilization: float = 0.0
    days_with_data: int = 0


@dataclass(slots=True, frozen=True)
class CompositeScoreResult:
    staff_id: StaffKey
    display_name: str
    rebook_score: float
    tip_score: float
    retention_score: float
    retail_score: float
    composite: int
    tier: str
    sample_size: int
    weights_version: str


@dataclass(slots=True, frozen=True)
class ThresholdPolicy:
    """Minimum-performance bar; passed explicitly, never read ambiently."""

    minimum_revenue: float = 0.0
    evaluation_period_days: int = 30
    alerts_enabled: bool = False

    def __post_init__(self) -> None:
        if self.minimum_revenue < 0:
            raise ValueError("minimum_revenue must be non-negative")
        if self.evaluation_period_days not in EVALUATION_PERIOD_CHOICES:
            raise ValueError(
                f"evaluation_period_days must be one of {EVALUATION_PERIOD_CHOICES}, "
                f"got {self.evaluation_period_days}"
            )


@dataclass(slots=True, frozen=True)
class ThresholdEvaluation:
    staff_id: StaffKey | None
    current_value: float
    prior_value: float
    percent_change: float | None
    days_with_data: int
    prorated_threshold: float | None
    is_below_threshold: bool


@dataclass(slots=True)
class ServiceMixItem:
    category: str
    hours: float
    revenue: float
    appointment_count: int
    # Share of booked hours, so a day's items sum to 100
    percentage: float


@dataclass(slots=True)
class DayCapacity:
    day: date
    day_name: str
    available_hours: float
    booked_hours: float
    # Not clamped: above 100 means the day is overbooked
    utilization_percent: float
    gap_hours: float
    revenue: float
    appointment_count: int
    service_mix: list[ServiceMixItem] = field(default_factory=list)


@dataclass(slots=True)
class CapacityBreakdown:
    """Inputs behind the available-hours figure, averaged over locations."""

    gross_hours_per_stylist: float
    break_minutes: float
    lunch_minutes: float
    padding_minutes: float
    stylist_count: int
    days_in_period: int


@dataclass(slots=True)
class CapacityReport:
    window: PeriodWindow
    days: list[DayCapacity]
    total_available_hours: float
    total_booked_hours: float
    total_gap_hours: float
    overall_utilization: float
    total_revenue: float
    total_appointments: int
    average_hourly_revenue: float
    gap_revenue: float
    stylist_count: int
    peak_day: DayCapacity | None = None
    low_day: DayCapacity | None = None
    service_mix: list[ServiceMixItem] = field(default_factory=list)
    breakdown: CapacityBreakdown | None = None

    def to_dict(self) -> dict[str, Any]:
        return serialize(self)


@dataclass(slots=True)
class RevenueTotals:
    total_revenue: float = 0.0
    service_revenue: float = 0.0
    product_revenue: float = 0.0
    transaction_count: int = 0
    average_ticket: float = 0.0
    days_with_data: int = 0
    unattributed_revenue: float = 0.0


@dataclass(slots=True)
class OrganizationSummary:
    current: RevenueTotals
    prior: RevenueTotals | None
    revenue_evaluation: ThresholdEvaluation
    staff_count: int
    scored_staff_count: int
    average_composite: float | None
    below_threshold_count: int = 0


@dataclass(slots=True)
class StaffPerformanceRow:
    identity: StaffIdentity
    metrics: StaffMetricAggregate
    score: CompositeScoreResult | None
    revenue_evaluation: ThresholdEvaluation


@dataclass(slots=True)
class StaffPerformanceReport:
    organization_id: str
    location_id: str | None
    window: PeriodWindow
    summary: OrganizationSummary
    staff: list[StaffPerformanceRow] = field(default_factory=list)
    scores: list[CompositeScoreResult] = field(default_factory=list)
    excluded_from_scoring: list[StaffKey] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return serialize(self)
