"""
Feedback rate aggregation.

Feedback responses are keyed by internal user id, so attribution goes
through the directory's reverse index.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from app.features.workforce_analytics.domain.models import FeedbackResponse, StaffKey
from app.features.workforce_analytics.pipeline.identity.service import StaffDirectory

from .common import partition_by_staff, rate_percent


@dataclass(slots=True)
class FeedbackMetrics:
    feedback_count: int = 0
    feedback_rate: float = 0.0


def aggregate_feedback(
    responses: Iterable[FeedbackResponse],
    directory: StaffDirectory,
    eligible_appointments: Mapping[StaffKey, int],
) -> dict[StaffKey, FeedbackMetrics]:
    partition = partition_by_staff(
        responses,
        lambda response: directory.external_id_for_user(response.staff_user_id),
        directory,
        source="feedback_responses",
    )

    metrics: dict[StaffKey, FeedbackMetrics] = {}
    for staff_id, rows in partition.by_staff.items():
        metrics[staff_id] = FeedbackMetrics(
            feedback_count=len(rows),
            feedback_rate=rate_percent(len(rows), eligible_appointments.get(staff_id, 0)),
        )
    return metrics
