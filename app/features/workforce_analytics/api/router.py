"""
Workforce analytics routes.

Read-only report endpoints scoped by organization. Source failures map to
503 so callers can retry the whole report; bad ranges map to 400.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.features.workforce_analytics.errors import SourceUnavailable
from app.features.workforce_analytics.services.report_service import (
    WorkforceAnalyticsService,
    workforce_analytics_service,
)
from app.infrastructure.observability.logging import get_logger

from .schemas import CapacityResponse, StaffPerformanceResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["workforce-analytics"])


def get_analytics_service() -> WorkforceAnalyticsService:
    return workforce_analytics_service


@router.get(
    "/organizations/{organization_id}/staff-performance",
    response_model=StaffPerformanceResponse,
)
async def get_staff_performance(
    organization_id: str,
    range_selector: str = Query("30days", alias="range", description="Range selector"),
    location_id: str | None = Query(None, description="Restrict to one location"),
    date_from: date | None = Query(None, description="Custom range start"),
    date_to: date | None = Query(None, description="Custom range end"),
    reference_date: date | None = Query(None, description="Defaults to today (UTC)"),
    compare: bool = Query(True, description="Include the prior-period comparison"),
    service: WorkforceAnalyticsService = Depends(get_analytics_service),
):
    """Per-staff metrics, composite scores (worst first) and threshold flags."""
    try:
        report = await service.build_staff_performance_report(
            organization_id,
            selector=range_selector,
            reference_date=reference_date,
            location_id=location_id,
            date_from=date_from,
            date_to=date_to,
            compare=compare,
        )
    except SourceUnavailable as e:
        logger.error(
            "Staff performance report unavailable",
            organization_id=organization_id,
            table=e.table,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Analytics source unavailable: {e.table}",
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return StaffPerformanceResponse.model_validate(report.to_dict())


@router.get("/organizations/{organization_id}/capacity", response_model=CapacityResponse)
async def get_capacity(
    organization_id: str,
    period: str = Query(
        "next7days", description="tomorrow, next7days, next30days or a backward range selector"
    ),
    location_id: str | None = Query(None, description="Restrict to one location"),
    reference_date: date | None = Query(None, description="Defaults to today (UTC)"),
    service: WorkforceAnalyticsService = Depends(get_analytics_service),
):
    """Available vs booked hours per day, with gap revenue."""
    try:
        report = await service.build_capacity_report(
            organization_id,
            period=period,
            reference_date=reference_date,
            location_id=location_id,
        )
    except SourceUnavailable as e:
        logger.error(
            "Capacity report unavailable",
            organization_id=organization_id,
            table=e.table,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Analytics source unavailable: {e.table}",
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return CapacityResponse.model_validate(report.to_dict())
