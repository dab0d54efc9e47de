"""
Workforce analytics report orchestration.

Per request: resolve the tenant scope (locations, staff directory), fetch
every source for the current and prior windows concurrently, then reduce.
A failed fetch aborts the whole report; callers re-run the pipeline rather
than resume it.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, date, datetime

from app.features.workforce_analytics.domain.models import (
    CapacityReport,
    CompositeScoreResult,
    EmployeeProfileRow,
    LocationConfig,
    OrganizationSummary,
    PeriodWindow,
    StaffPerformanceReport,
    StaffPerformanceRow,
    StaffKey,
    ThresholdPolicy,
)
from app.features.workforce_analytics.pipeline.aggregation.capacity import CapacityCalculator
from app.features.workforce_analytics.pipeline.aggregation.service import (
    StaffMetricsAggregator,
    WindowAggregation,
    WindowRecords,
)
from app.features.workforce_analytics.pipeline.evaluation.service import ThresholdEvaluator
from app.features.workforce_analytics.pipeline.identity.service import (
    StaffDirectory,
    StaffIdentityResolver,
)
from app.features.workforce_analytics.pipeline.scoring.service import CompositeScorer
from app.features.workforce_analytics.pipeline.windows import TimeWindowResolver
from app.features.workforce_analytics.repository.analytics_repository import AnalyticsRepository
from app.features.workforce_analytics.store.fetcher import PaginatedFetcher
from app.features.workforce_analytics.store.repository import RecordStore, record_store
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _today() -> date:
    return datetime.now(UTC).date()


class WorkforceAnalyticsService:
    def __init__(
        self,
        store: RecordStore | None = None,
        *,
        page_size: int | None = None,
        capacity: CapacityCalculator | None = None,
        scorer: CompositeScorer | None = None,
    ):
        self.repository = AnalyticsRepository(PaginatedFetcher(store or record_store, page_size))
        self.windows = TimeWindowResolver()
        self.identities = StaffIdentityResolver()
        self.capacity = capacity or CapacityCalculator()
        self.aggregator = StaffMetricsAggregator(self.capacity)
        self.scorer = scorer or CompositeScorer()
        self.evaluator = ThresholdEvaluator()

    async def _fetch_window(
        self,
        organization_id: str,
        location_ids: list[str],
        staff_ids: list[str],
        window: PeriodWindow,
    ) -> WindowRecords:
        appointments, items, summaries, weekly, feedback = await asyncio.gather(
            self.repository.fetch_appointments(location_ids, window),
            self.repository.fetch_transaction_items(location_ids, window),
            self.repository.fetch_daily_sales(location_ids, window),
            self.repository.fetch_weekly_metrics(staff_ids, window),
            self.repository.fetch_feedback_responses(organization_id, window),
        )
        return WindowRecords(
            window=window,
            appointments=appointments,
            transaction_items=items,
            daily_sales=summaries,
            weekly_metrics=weekly,
            feedback=feedback,
        )

    async def _fetch_locations(
        self, organization_id: str, location_id: str | None
    ) -> list[LocationConfig]:
        locations = await self.repository.fetch_locations(organization_id, location_id)
        if not locations:
            logger.info(
                "No active locations in scope",
                organization_id=organization_id,
                location_id=location_id,
            )
        return locations

    async def _resolve_directory(self, profiles: list[EmployeeProfileRow]) -> StaffDirectory:
        # POS mappings have no tenant column; the tenant's profiles scope them
        mappings = await self.repository.fetch_staff_mappings(
            [profile.user_id for profile in profiles]
        )
        return self.identities.resolve_all(mappings, profiles)

    async def build_staff_performance_report(
        self,
        organization_id: str,
        *,
        selector: str = "30days",
        reference_date: date | None = None,
        location_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        compare: bool = True,
        policy: ThresholdPolicy | None = None,
    ) -> StaffPerformanceReport:
        """
        Build the per-staff performance report for one tenant.

        ``policy`` overrides the stored threshold policy.

        Raises:
            ValueError: invalid selector or custom range.
            SourceUnavailable: any source read failed.
        """
        started = time.perf_counter()
        window = self.windows.resolve(
            selector,
            reference_date or _today(),
            date_from=date_from,
            date_to=date_to,
            with_prior=compare,
        )

        scope = [
            self._fetch_locations(organization_id, location_id),
            self.repository.fetch_employee_profiles(organization_id),
        ]
        if policy is None:
            scope.append(self.repository.fetch_threshold_policy())
        scoped = await asyncio.gather(*scope)
        locations, profiles = scoped[0], scoped[1]
        if policy is None:
            policy = scoped[2]

        directory = await self._resolve_directory(profiles)
        location_ids = [location.location_id for location in locations]
        staff_ids = [identity.external_id for identity in directory]

        fetches = [self._fetch_window(organization_id, location_ids, staff_ids, window)]
        if window.prior is not None:
            fetches.append(
                self._fetch_window(organization_id, location_ids, staff_ids, window.prior)
            )
        results = await asyncio.gather(*fetches)
        current_records = results[0]
        prior_records = results[1] if len(results) > 1 else None

        current = self.aggregator.aggregate(current_records, directory, locations)
        prior = (
            self.aggregator.aggregate(prior_records, directory, locations)
            if prior_records is not None
            else None
        )

        outcome = self.scorer.score_all(current.staff.values())
        scores_by_staff = {score.staff_id: score for score in outcome.scores}

        rows = self._build_rows(current, prior, directory, scores_by_staff, policy)
        summary = self._build_summary(current, prior, rows, outcome.scores)

        report = StaffPerformanceReport(
            organization_id=organization_id,
            location_id=location_id,
            window=window,
            summary=summary,
            staff=rows,
            scores=outcome.scores,
            excluded_from_scoring=outcome.excluded,
        )

        logger.info(
            "Staff performance report built",
            organization_id=organization_id,
            location_id=location_id,
            start_date=window.start_date.isoformat(),
            end_date=window.end_date.isoformat(),
            staff=len(rows),
            scored=len(outcome.scores),
            excluded=len(outcome.excluded),
            below_threshold=summary.below_threshold_count,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return report

    def _build_rows(
        self,
        current: WindowAggregation,
        prior: WindowAggregation | None,
        directory: StaffDirectory,
        scores_by_staff: dict[StaffKey, CompositeScoreResult],
        policy: ThresholdPolicy,
    ) -> list[StaffPerformanceRow]:
        rows: list[StaffPerformanceRow] = []
        for staff_id, metrics in current.staff.items():
            prior_revenue = None
            if prior is not None:
                prior_revenue = prior.revenue.for_staff(staff_id).total_revenue

            rows.append(
                StaffPerformanceRow(
                    identity=directory.require(staff_id),
                    metrics=metrics,
                    score=scores_by_staff.get(staff_id),
                    revenue_evaluation=self.evaluator.evaluate(
                        metrics.total_revenue,
                        prior_revenue,
                        policy,
                        days_with_data=metrics.days_with_data,
                        staff_id=staff_id,
                    ),
                )
            )

        rows.sort(key=lambda row: (-row.metrics.total_revenue, row.identity.display_name))
        return rows

    def _build_summary(
        self,
        current: WindowAggregation,
        prior: WindowAggregation | None,
        rows: list[StaffPerformanceRow],
        scores: list[CompositeScoreResult],
    ) -> OrganizationSummary:
        organization = current.revenue.organization
        prior_totals = prior.revenue.organization if prior is not None else None

        # Organization revenue is a trend only; the minimum applies per staff member
        evaluation = self.evaluator.evaluate(
            organization.total_revenue,
            prior_totals.total_revenue if prior_totals is not None else None,
            ThresholdPolicy(),
            days_with_data=organization.days_with_data,
        )

        return OrganizationSummary(
            current=organization,
            prior=prior_totals,
            revenue_evaluation=evaluation,
            staff_count=len(rows),
            scored_staff_count=len(scores),
            average_composite=(
                sum(score.composite for score in scores) / len(scores) if scores else None
            ),
            below_threshold_count=sum(
                1 for row in rows if row.revenue_evaluation.is_below_threshold
            ),
        )

    async def build_capacity_report(
        self,
        organization_id: str,
        *,
        period: str = "next7days",
        reference_date: date | None = None,
        location_id: str | None = None,
    ) -> CapacityReport:
        """
        Capacity and utilization for a forward period (forecast from booked
        appointments) or a backward range selector.
        """
        reference_date = reference_date or _today()
        if self.windows.is_forward_period(period):
            window = self.windows.resolve_forward(period, reference_date)
        else:
            window = self.windows.resolve(period, reference_date)

        locations = await self._fetch_locations(organization_id, location_id)
        appointments = await self.repository.fetch_appointments(
            [location.location_id for location in locations], window, exclude_cancelled=True
        )

        report = self.capacity.build_report(window, locations, appointments)
        logger.info(
            "Capacity report built",
            organization_id=organization_id,
            location_id=location_id,
            start_date=window.start_date.isoformat(),
            end_date=window.end_date.isoformat(),
            appointments=report.total_appointments,
            utilization=round(report.overall_utilization, 1),
        )
        return report


workforce_analytics_service = WorkforceAnalyticsService()
