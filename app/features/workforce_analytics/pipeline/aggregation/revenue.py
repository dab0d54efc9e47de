"""
Revenue rollup from daily sales summaries.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from app.features.workforce_analytics.domain.models import (
    DailySalesSummary,
    RevenueTotals,
    StaffKey,
)
from app.features.workforce_analytics.pipeline.identity.service import StaffDirectory

from .common import partition_by_staff, safe_div


@dataclass(slots=True)
class RevenueRollup:
    organization: RevenueTotals
    by_staff: dict[StaffKey, RevenueTotals] = field(default_factory=dict)

    def for_staff(self, staff_id: StaffKey) -> RevenueTotals:
        return self.by_staff.get(staff_id) or RevenueTotals()


def summarize_revenue(summaries: Iterable[DailySalesSummary]) -> RevenueTotals:
    totals = RevenueTotals()
    days = set()
    for summary in summaries:
        totals.total_revenue += summary.total_revenue
        totals.service_revenue += summary.service_revenue
        totals.product_revenue += summary.product_revenue
        totals.transaction_count += summary.total_transactions
        days.add(summary.summary_date)

    totals.average_ticket = safe_div(totals.total_revenue, totals.transaction_count)
    totals.days_with_data = len(days)
    return totals


def aggregate_revenue(
    summaries: Iterable[DailySalesSummary], directory: StaffDirectory
) -> RevenueRollup:
    """
    Sum revenue per staff member and for the whole organization.

    Summaries carry the POS staff id and sometimes the internal user id;
    either is enough to attribute a row. Unattributed rows still count in
    the organization totals and are reported as ``unattributed_revenue``.
    """
    summaries = list(summaries)

    def staff_key(summary: DailySalesSummary) -> StaffKey | None:
        if summary.staff_id is not None and summary.staff_id in directory:
            return summary.staff_id
        return directory.external_id_for_user(summary.user_id) or summary.staff_id

    partition = partition_by_staff(summaries, staff_key, directory, source="daily_sales")

    organization = summarize_revenue(summaries)
    organization.unattributed_revenue = sum(row.total_revenue for row in partition.unattributed)

    return RevenueRollup(
        organization=organization,
        by_staff={
            staff_id: summarize_revenue(rows) for staff_id, rows in partition.by_staff.items()
        },
    )
