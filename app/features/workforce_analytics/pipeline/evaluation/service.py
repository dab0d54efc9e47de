"""
Threshold and trend evaluation.
"""

from __future__ import annotations

from app.features.workforce_analytics.constants import MIN_DAYS_FOR_THRESHOLD_ALERT
from app.features.workforce_analytics.domain.models import (
    StaffKey,
    ThresholdEvaluation,
    ThresholdPolicy,
)


def percent_change(current: float, prior: float) -> float | None:
    """Relative change in percent; None when there is no prior value to compare."""
    if prior == 0:
        return None
    return (current - prior) / prior * 100.0


def prorate_threshold(policy: ThresholdPolicy, days_with_data: int) -> float:
    """Scale the minimum down for tenants with less than a full period of history."""
    period = policy.evaluation_period_days
    covered = max(0, min(days_with_data, period))
    return policy.minimum_revenue * covered / period


class ThresholdEvaluator:
    def evaluate(
        self,
        current: float,
        prior: float | None,
        policy: ThresholdPolicy,
        *,
        days_with_data: int,
        staff_id: StaffKey | None = None,
    ) -> ThresholdEvaluation:
        prior_value = prior if prior is not None else 0.0

        prorated: float | None = None
        is_below = False
        if policy.alerts_enabled:
            prorated = prorate_threshold(policy, days_with_data)
            # Partial data would flag almost everyone
            if days_with_data >= MIN_DAYS_FOR_THRESHOLD_ALERT:
                is_below = current < prorated

        return ThresholdEvaluation(
            staff_id=staff_id,
            current_value=current,
            prior_value=prior_value,
            percent_change=percent_change(current, prior_value),
            days_with_data=days_with_data,
            prorated_threshold=prorated,
            is_below_threshold=is_below,
        )


threshold_evaluator = ThresholdEvaluator()
