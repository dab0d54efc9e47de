"""
Workforce analytics API response models.
Built from the domain reports' ``to_dict()`` output.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class WindowResponse(BaseModel):
    """Inclusive date window."""

    start_date: date = Field(..., description="First day of the window")
    end_date: date = Field(..., description="Last day of the window")
    prior: WindowResponse | None = Field(None, description="Equal-length comparison window")


class StaffIdentityResponse(BaseModel):
    external_id: str
    user_id: str | None = None
    display_name: str
    photo_url: str | None = None


class StaffMetricsResponse(BaseModel):
    """Per-staff metrics for the window. Rates are percentages."""

    staff_id: str
    display_name: str
    total_revenue: float
    service_revenue: float
    product_revenue: float
    transaction_count: int
    average_ticket: float
    appointment_count: int
    cancelled_count: int
    no_show_count: int
    appointment_revenue: float
    unique_clients: int
    rebook_count: int
    rebook_rate: float
    tip_total: float
    average_tip: float
    tipped_percent: float
    tip_rate: float
    feedback_count: int
    feedback_rate: float
    retention_rate: float
    retention_weeks: int
    retail_attachment: float
    attached_transaction_rate: float
    units_sold: int
    booked_hours: float
    available_hours: float
    utilization: float
    days_with_data: int


class CompositeScoreResponse(BaseModel):
    staff_id: str
    display_name: str
    rebook_score: float
    tip_score: float
    retention_score: float
    retail_score: float
    composite: int = Field(..., ge=0, le=100, description="Weighted composite score")
    tier: str = Field(..., description="needs_attention, watch or strong")
    sample_size: int = Field(..., description="Eligible appointments in the window")
    weights_version: str


class ThresholdEvaluationResponse(BaseModel):
    staff_id: str | None = None
    current_value: float
    prior_value: float
    percent_change: float | None = Field(None, description="Null when the prior value is zero")
    days_with_data: int
    prorated_threshold: float | None = None
    is_below_threshold: bool


class RevenueTotalsResponse(BaseModel):
    total_revenue: float
    service_revenue: float
    product_revenue: float
    transaction_count: int
    average_ticket: float
    days_with_data: int
    unattributed_revenue: float


class OrganizationSummaryResponse(BaseModel):
    current: RevenueTotalsResponse
    prior: RevenueTotalsResponse | None = None
    revenue_evaluation: ThresholdEvaluationResponse
    staff_count: int
    scored_staff_count: int
    average_composite: float | None = None
    below_threshold_count: int


class StaffPerformanceRowResponse(BaseModel):
    identity: StaffIdentityResponse
    metrics: StaffMetricsResponse
    score: CompositeScoreResponse | None = None
    revenue_evaluation: ThresholdEvaluationResponse


class StaffPerformanceResponse(BaseModel):
    """Staff performance report for one organization and window."""

    organization_id: str = Field(..., description="Tenant the report covers")
    location_id: str | None = Field(None, description="Location filter, if any")
    window: WindowResponse
    summary: OrganizationSummaryResponse
    staff: list[StaffPerformanceRowResponse] = Field(default_factory=list)
    scores: list[CompositeScoreResponse] = Field(
        default_factory=list, description="Scored staff, worst first"
    )
    excluded_from_scoring: list[str] = Field(
        default_factory=list, description="Staff with too few appointments to score"
    )


class ServiceMixItemResponse(BaseModel):
    category: str
    hours: float
    revenue: float
    appointment_count: int
    percentage: float = Field(..., description="Share of booked hours")


class DayCapacityResponse(BaseModel):
    day: date
    day_name: str
    available_hours: float
    booked_hours: float
    utilization_percent: float = Field(..., description="Above 100 when overbooked")
    gap_hours: float
    revenue: float
    appointment_count: int
    service_mix: list[ServiceMixItemResponse] = Field(default_factory=list)


class CapacityBreakdownResponse(BaseModel):
    gross_hours_per_stylist: float
    break_minutes: float
    lunch_minutes: float
    padding_minutes: float
    stylist_count: int
    days_in_period: int


class CapacityResponse(BaseModel):
    """Capacity and utilization across a window."""

    window: WindowResponse
    days: list[DayCapacityResponse] = Field(default_factory=list)
    total_available_hours: float
    total_booked_hours: float
    total_gap_hours: float
    overall_utilization: float
    total_revenue: float
    total_appointments: int
    average_hourly_revenue: float
    gap_revenue: float
    stylist_count: int
    peak_day: DayCapacityResponse | None = None
    low_day: DayCapacityResponse | None = None
    service_mix: list[ServiceMixItemResponse] = Field(
        default_factory=list, description="Booked hours by service category, largest first"
    )
    breakdown: CapacityBreakdownResponse | None = None
