"""
Shared helpers for the metric aggregators.

Records are partitioned by canonical staff key once per call; rate helpers
guard zero denominators locally so sparse tenants never produce NaN.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from app.features.workforce_analytics.domain.models import StaffKey
from app.features.workforce_analytics.errors import MissingIdentity
from app.features.workforce_analytics.pipeline.identity.service import StaffDirectory
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

UNATTRIBUTED_SAMPLE_SIZE = 5


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    if not denominator:
        return default
    return numerator / denominator


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def rate_percent(count: float, denominator: float) -> float:
    """``count / denominator * 100`` clamped to [0, 100]; 0 for an empty denominator."""
    return clamp(safe_div(count, denominator) * 100.0)


def mean(values: Iterable[float]) -> float | None:
    values = list(values)
    if not values:
        return None
    return sum(values) / len(values)


@dataclass(slots=True)
class StaffPartition(Generic[T]):
    """Records grouped by staff key, plus those no directory entry claims."""

    by_staff: dict[StaffKey, list[T]] = field(default_factory=dict)
    unattributed: list[T] = field(default_factory=list)

    def records_for(self, staff_id: StaffKey) -> list[T]:
        return self.by_staff.get(staff_id, [])

    def all_records(self) -> list[T]:
        records = [record for group in self.by_staff.values() for record in group]
        records.extend(self.unattributed)
        return records


def partition_by_staff(
    records: Iterable[T],
    staff_key: Callable[[T], StaffKey | None],
    directory: StaffDirectory,
    *,
    source: str,
) -> StaffPartition[T]:
    """
    Group records by the staff key the directory knows.

    Records with a null or unknown key stay in ``unattributed`` so they still
    count toward organization totals. One warning is logged per call.
    """
    partition: StaffPartition[T] = StaffPartition()
    unknown_ids: list[str | None] = []

    for record in records:
        external_id = staff_key(record)
        try:
            identity = directory.require(external_id)
        except MissingIdentity as e:
            partition.unattributed.append(record)
            if e.external_id not in unknown_ids:
                unknown_ids.append(e.external_id)
            continue
        partition.by_staff.setdefault(identity.external_id, []).append(record)

    if partition.unattributed:
        logger.warning(
            "Records without a staff identity kept in organization totals only",
            source=source,
            count=len(partition.unattributed),
            sample_ids=unknown_ids[:UNATTRIBUTED_SAMPLE_SIZE],
        )
    return partition
