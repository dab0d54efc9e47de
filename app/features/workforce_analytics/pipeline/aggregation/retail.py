"""
Retail aggregation from POS transaction lines.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.features.workforce_analytics.domain.models import StaffKey, TransactionItemRecord

from .common import StaffPartition, rate_percent


@dataclass(slots=True)
class RetailMetrics:
    product_revenue: float = 0.0
    units_sold: int = 0
    service_transactions: int = 0
    attached_transactions: int = 0
    # Share of service transactions that also carried a product line
    attached_transaction_rate: float = 0.0


def summarize_retail(items: list[TransactionItemRecord]) -> RetailMetrics:
    metrics = RetailMetrics()
    service_transactions: set[str] = set()
    product_transactions: set[str] = set()

    for item in items:
        if item.is_product:
            metrics.product_revenue += item.total_amount
            metrics.units_sold += item.quantity
            if item.transaction_id:
                product_transactions.add(item.transaction_id)
        elif item.is_service and item.transaction_id:
            service_transactions.add(item.transaction_id)

    metrics.service_transactions = len(service_transactions)
    metrics.attached_transactions = len(service_transactions & product_transactions)
    metrics.attached_transaction_rate = rate_percent(
        metrics.attached_transactions, metrics.service_transactions
    )
    return metrics


def aggregate_retail(
    partition: StaffPartition[TransactionItemRecord],
) -> dict[StaffKey, RetailMetrics]:
    return {staff_id: summarize_retail(items) for staff_id, items in partition.by_staff.items()}
