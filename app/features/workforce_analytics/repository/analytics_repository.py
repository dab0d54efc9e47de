"""
Typed loaders for every analytics source table.

Each method builds a FilterSpec, reads through the paginated fetcher and
converts loosely-typed store rows into domain records exactly once, so the
aggregators never inspect raw dicts.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from app.features.workforce_analytics.constants import (
    APPOINTMENTS_TABLE,
    DAILY_SALES_TABLE,
    DEFAULT_APPOINTMENT_PADDING_MINUTES,
    EMPLOYEE_PROFILES_TABLE,
    EXCLUDED_STATUSES,
    FEEDBACK_RESPONSES_TABLE,
    LOCATIONS_TABLE,
    PERFORMANCE_METRICS_TABLE,
    PERFORMANCE_THRESHOLD_SETTING,
    SITE_SETTINGS_TABLE,
    STAFF_MAPPING_TABLE,
    TRANSACTION_ITEMS_TABLE,
)
from app.features.workforce_analytics.domain.models import (
    AppointmentRecord,
    DailySalesSummary,
    DayHours,
    EmployeeProfileRow,
    FeedbackResponse,
    LocationConfig,
    PeriodWindow,
    StaffMappingRow,
    ThresholdPolicy,
    TransactionItemRecord,
    WeeklyPerformanceRow,
)
from app.features.workforce_analytics.store.fetcher import PaginatedFetcher
from app.features.workforce_analytics.store.repository import FilterSpec
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _unparseable(value: Any, table: str | None, column: str | None, default: Any) -> None:
    logger.warning(
        "Unparseable numeric value, using default",
        table=table,
        column=column,
        raw=str(value)[:100],
        default=default,
    )


def _to_float(
    value: Any, default: float = 0.0, *, table: str | None = None, column: str | None = None
) -> float:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        _unparseable(value, table, column, default)
        return default


def _to_optional_float(
    value: Any, *, table: str | None = None, column: str | None = None
) -> float | None:
    if value is None:
        return None
    return _to_float(value, table=table, column=column)


def _to_int(
    value: Any, default: int = 0, *, table: str | None = None, column: str | None = None
) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        _unparseable(value, table, column, default)
        return default


def _to_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _to_time(value: Any) -> time | None:
    if value is None or isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        return None


def _parse_hours(value: Any) -> dict[str, DayHours] | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Unparseable location hours", raw=value[:100])
            return None
    if not isinstance(value, dict):
        return None

    hours: dict[str, DayHours] = {}
    for day_name, entry in value.items():
        if not isinstance(entry, dict):
            continue
        hours[str(day_name).lower()] = DayHours(
            open=entry.get("open"),
            close=entry.get("close"),
            closed=bool(entry.get("closed", False)),
        )
    return hours


class AnalyticsRepository:
    """Loads analytics source rows for one tenant through the paginated fetcher."""

    def __init__(self, fetcher: PaginatedFetcher):
        self.fetcher = fetcher

    async def fetch_locations(
        self, organization_id: str, location_id: str | None = None
    ) -> list[LocationConfig]:
        equals: dict[str, Any] = {"organization_id": organization_id, "is_active": True}
        if location_id:
            equals["id"] = location_id

        rows = await self.fetcher.fetch_all(
            LOCATIONS_TABLE,
            FilterSpec(
                columns=(
                    "id",
                    "name",
                    "hours_json",
                    "stylist_capacity",
                    "break_minutes_per_day",
                    "lunch_minutes",
                    "appointment_padding_minutes",
                ),
                equals=equals,
            ),
        )
        table = LOCATIONS_TABLE
        return [
            LocationConfig(
                location_id=str(row["id"]),
                name=row.get("name"),
                hours=_parse_hours(row.get("hours_json")),
                stylist_capacity=(
                    _to_int(row["stylist_capacity"], table=table, column="stylist_capacity")
                    if row.get("stylist_capacity") is not None
                    else None
                ),
                break_minutes=_to_int(
                    row.get("break_minutes_per_day"), table=table, column="break_minutes_per_day"
                ),
                lunch_minutes=_to_int(
                    row.get("lunch_minutes"), table=table, column="lunch_minutes"
                ),
                padding_minutes=_to_int(
                    row.get("appointment_padding_minutes"),
                    default=DEFAULT_APPOINTMENT_PADDING_MINUTES,
                    table=table,
                    column="appointment_padding_minutes",
                ),
            )
            for row in rows
        ]

    async def fetch_staff_mappings(self, user_ids: Sequence[str]) -> list[StaffMappingRow]:
        """
        POS mappings for the given internal users.

        The mapping table carries no tenant column; callers scope it through
        the tenant's employee profiles.
        """
        rows = await self.fetcher.fetch_all(
            STAFF_MAPPING_TABLE,
            FilterSpec(
                columns=("id", "phorest_staff_id", "user_id", "phorest_staff_name", "is_active"),
                in_={"user_id": list(user_ids)},
                not_null=("phorest_staff_id",),
            ),
        )
        return [
            StaffMappingRow(
                external_id=str(row["phorest_staff_id"]),
                user_id=_to_str(row.get("user_id")),
                external_name=row.get("phorest_staff_name"),
                is_active=row.get("is_active") is not False,
            )
            for row in rows
        ]

    async def fetch_employee_profiles(self, organization_id: str) -> list[EmployeeProfileRow]:
        rows = await self.fetcher.fetch_all(
            EMPLOYEE_PROFILES_TABLE,
            FilterSpec(
                columns=("id", "user_id", "full_name", "display_name", "photo_url", "is_active"),
                equals={"organization_id": organization_id},
                not_null=("user_id",),
            ),
        )
        return [
            EmployeeProfileRow(
                user_id=str(row["user_id"]),
                full_name=row.get("full_name"),
                display_name=row.get("display_name"),
                photo_url=row.get("photo_url"),
                is_active=row.get("is_active") is not False,
            )
            for row in rows
        ]

    async def fetch_appointments(
        self,
        location_ids: Sequence[str],
        window: PeriodWindow,
        *,
        exclude_cancelled: bool = False,
    ) -> list[AppointmentRecord]:
        not_in = {"status": sorted(EXCLUDED_STATUSES)} if exclude_cancelled else {}
        rows = await self.fetcher.fetch_all(
            APPOINTMENTS_TABLE,
            FilterSpec(
                columns=(
                    "id",
                    "phorest_staff_id",
                    "location_id",
                    "appointment_date",
                    "start_time",
                    "end_time",
                    "total_price",
                    "status",
                    "tip_amount",
                    "rebooked_at_checkout",
                    "phorest_client_id",
                    "service_name",
                    "service_category",
                ),
                in_={"location_id": list(location_ids)},
                not_in=not_in,
                gte={"appointment_date": window.start_date},
                lte={"appointment_date": window.end_date},
            ),
        )
        table = APPOINTMENTS_TABLE
        return [
            AppointmentRecord(
                appointment_id=_to_str(row.get("id")),
                staff_id=_to_str(row.get("phorest_staff_id")),
                location_id=_to_str(row.get("location_id")),
                appointment_date=_to_date(row["appointment_date"]),
                start_time=_to_time(row.get("start_time")),
                end_time=_to_time(row.get("end_time")),
                total_price=_to_float(row.get("total_price"), table=table, column="total_price"),
                status=row.get("status") or "",
                tip_amount=_to_optional_float(
                    row.get("tip_amount"), table=table, column="tip_amount"
                ),
                rebooked=row.get("rebooked_at_checkout"),
                client_id=_to_str(row.get("phorest_client_id")),
                service_name=row.get("service_name"),
                service_category=row.get("service_category"),
            )
            for row in rows
        ]

    async def fetch_transaction_items(
        self, location_ids: Sequence[str], window: PeriodWindow
    ) -> list[TransactionItemRecord]:
        rows = await self.fetcher.fetch_all(
            TRANSACTION_ITEMS_TABLE,
            FilterSpec(
                columns=(
                    "id",
                    "transaction_id",
                    "phorest_staff_id",
                    "transaction_date",
                    "item_type",
                    "quantity",
                    "total_amount",
                    "location_id",
                ),
                in_={"location_id": list(location_ids)},
                gte={"transaction_date": window.start_date},
                lte={"transaction_date": window.end_date},
            ),
        )
        table = TRANSACTION_ITEMS_TABLE
        return [
            TransactionItemRecord(
                transaction_id=_to_str(row.get("transaction_id")),
                staff_id=_to_str(row.get("phorest_staff_id")),
                transaction_date=_to_date(row["transaction_date"]),
                item_type=row.get("item_type") or "",
                quantity=_to_int(row.get("quantity"), default=1, table=table, column="quantity"),
                total_amount=_to_float(
                    row.get("total_amount"), table=table, column="total_amount"
                ),
                location_id=_to_str(row.get("location_id")),
            )
            for row in rows
        ]

    async def fetch_daily_sales(
        self, location_ids: Sequence[str], window: PeriodWindow
    ) -> list[DailySalesSummary]:
        rows = await self.fetcher.fetch_all(
            DAILY_SALES_TABLE,
            FilterSpec(
                columns=(
                    "id",
                    "phorest_staff_id",
                    "user_id",
                    "location_id",
                    "summary_date",
                    "total_revenue",
                    "service_revenue",
                    "product_revenue",
                    "total_transactions",
                ),
                in_={"location_id": list(location_ids)},
                gte={"summary_date": window.start_date},
                lte={"summary_date": window.end_date},
            ),
        )
        table = DAILY_SALES_TABLE
        return [
            DailySalesSummary(
                staff_id=_to_str(row.get("phorest_staff_id")),
                user_id=_to_str(row.get("user_id")),
                location_id=_to_str(row.get("location_id")),
                summary_date=_to_date(row["summary_date"]),
                total_revenue=_to_float(
                    row.get("total_revenue"), table=table, column="total_revenue"
                ),
                service_revenue=_to_float(
                    row.get("service_revenue"), table=table, column="service_revenue"
                ),
                product_revenue=_to_float(
                    row.get("product_revenue"), table=table, column="product_revenue"
                ),
                total_transactions=_to_int(
                    row.get("total_transactions"), table=table, column="total_transactions"
                ),
            )
            for row in rows
        ]

    async def fetch_weekly_metrics(
        self, staff_ids: Sequence[str], window: PeriodWindow
    ) -> list[WeeklyPerformanceRow]:
        """Weekly POS metrics for the given external staff ids."""
        # A week starting up to six days before the window still overlaps it
        rows = await self.fetcher.fetch_all(
            PERFORMANCE_METRICS_TABLE,
            FilterSpec(
                columns=("id", "phorest_staff_id", "week_start", "retention_rate", "rebooking_rate"),
                in_={"phorest_staff_id": list(staff_ids)},
                gte={"week_start": window.start_date - timedelta(days=6)},
                lte={"week_start": window.end_date},
            ),
        )
        table = PERFORMANCE_METRICS_TABLE
        return [
            WeeklyPerformanceRow(
                staff_id=_to_str(row.get("phorest_staff_id")),
                week_start=_to_date(row["week_start"]),
                retention_rate=_to_optional_float(
                    row.get("retention_rate"), table=table, column="retention_rate"
                ),
                rebooking_rate=_to_optional_float(
                    row.get("rebooking_rate"), table=table, column="rebooking_rate"
                ),
            )
            for row in rows
        ]

    async def fetch_feedback_responses(
        self, organization_id: str, window: PeriodWindow
    ) -> list[FeedbackResponse]:
        rows = await self.fetcher.fetch_all(
            FEEDBACK_RESPONSES_TABLE,
            FilterSpec(
                columns=("id", "staff_user_id", "responded_at"),
                equals={"organization_id": organization_id},
                gte={"responded_at": datetime.combine(window.start_date, time.min)},
                lte={"responded_at": datetime.combine(window.end_date, time.max)},
                not_null=("responded_at",),
            ),
        )
        return [
            FeedbackResponse(
                staff_user_id=_to_str(row.get("staff_user_id")),
                responded_at=_to_datetime(row.get("responded_at")),
            )
            for row in rows
        ]

    async def fetch_threshold_policy(self) -> ThresholdPolicy:
        """
        Load the performance threshold policy; alerts stay disabled when unset.

        ``site_settings`` is keyed by setting id alone, so one policy
        applies to every tenant.
        """
        rows = await self.fetcher.fetch_all(
            SITE_SETTINGS_TABLE,
            FilterSpec(
                columns=("id", "value"),
                equals={"id": PERFORMANCE_THRESHOLD_SETTING},
            ),
        )
        if not rows:
            return ThresholdPolicy()

        value = rows[0].get("value") or {}
        try:
            if isinstance(value, str):
                value = json.loads(value)
            if not isinstance(value, dict):
                raise ValueError(f"expected an object, got {type(value).__name__}")
            return ThresholdPolicy(
                minimum_revenue=_to_float(
                    value.get("minimumRevenue"), table=SITE_SETTINGS_TABLE, column="value"
                ),
                evaluation_period_days=_to_int(
                    value.get("evaluationPeriodDays"),
                    default=30,
                    table=SITE_SETTINGS_TABLE,
                    column="value",
                ),
                alerts_enabled=bool(value.get("alertsEnabled", False)),
            )
        except ValueError as e:
            logger.warning(
                "Invalid performance threshold setting, alerts disabled",
                setting_id=PERFORMANCE_THRESHOLD_SETTING,
                error=str(e),
            )
            return ThresholdPolicy()
