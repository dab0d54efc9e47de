"""
Composite experience scoring.

Four metrics are normalized onto 0-100 and combined with a versioned weight
set. Staff below the minimum sample are left out of the scored list rather
than given a synthetic score. Output is ordered worst first.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from app.features.workforce_analytics.constants import (
    MIN_SCORING_APPOINTMENTS,
    STRONG_TIER_FLOOR,
    TIER_NEEDS_ATTENTION,
    TIER_STRONG,
    TIER_WATCH,
    TIP_RATE_CEILING,
    WATCH_TIER_FLOOR,
)
from app.features.workforce_analytics.domain.models import (
    CompositeScoreResult,
    StaffKey,
    StaffMetricAggregate,
)
from app.features.workforce_analytics.errors import InsufficientSample
from app.features.workforce_analytics.pipeline.aggregation.common import clamp
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ScoreWeights:
    version: str
    rebook: Decimal
    tip: Decimal
    retention: Decimal
    retail: Decimal

    def __post_init__(self) -> None:
        total = self.rebook + self.tip + self.retention + self.retail
        if total != Decimal("1"):
            raise ValueError(f"Score weights {self.version} sum to {total}, expected exactly 1")
        if any(weight < 0 for weight in (self.rebook, self.tip, self.retention, self.retail)):
            raise ValueError(f"Score weights {self.version} must be non-negative")


SCORE_WEIGHTS_V1 = ScoreWeights(
    version="v1",
    rebook=Decimal("0.35"),
    tip=Decimal("0.30"),
    retention=Decimal("0.20"),
    retail=Decimal("0.15"),
)


def normalize_tip_rate(tip_rate: float) -> float:
    return clamp(tip_rate / TIP_RATE_CEILING * 100.0)


def classify_tier(score: float) -> str:
    if score < WATCH_TIER_FLOOR:
        return TIER_NEEDS_ATTENTION
    if score < STRONG_TIER_FLOOR:
        return TIER_WATCH
    return TIER_STRONG


@dataclass(slots=True)
class ScoringOutcome:
    scores: list[CompositeScoreResult]
    excluded: list[StaffKey]


class CompositeScorer:
    def __init__(
        self,
        weights: ScoreWeights = SCORE_WEIGHTS_V1,
        min_appointments: int = MIN_SCORING_APPOINTMENTS,
    ):
        self.weights = weights
        self.min_appointments = min_appointments

    def score(self, aggregate: StaffMetricAggregate) -> CompositeScoreResult:
        """
        Score one staff member.

        Raises:
            InsufficientSample: fewer eligible appointments than the minimum.
        """
        if aggregate.appointment_count < self.min_appointments:
            raise InsufficientSample(
                aggregate.staff_id, aggregate.appointment_count, self.min_appointments
            )

        rebook = clamp(aggregate.rebook_rate)
        tip = normalize_tip_rate(aggregate.tip_rate)
        retention = clamp(aggregate.retention_rate)
        retail = clamp(aggregate.retail_attachment)

        weighted = (
            rebook * float(self.weights.rebook)
            + tip * float(self.weights.tip)
            + retention * float(self.weights.retention)
            + retail * float(self.weights.retail)
        )
        # Half-up, not round()'s half-to-even
        composite = math.floor(clamp(weighted) + 0.5)

        return CompositeScoreResult(
            staff_id=aggregate.staff_id,
            display_name=aggregate.display_name,
            rebook_score=rebook,
            tip_score=tip,
            retention_score=retention,
            retail_score=retail,
            composite=composite,
            tier=classify_tier(composite),
            sample_size=aggregate.appointment_count,
            weights_version=self.weights.version,
        )

    def score_all(self, aggregates: Iterable[StaffMetricAggregate]) -> ScoringOutcome:
        scores: list[CompositeScoreResult] = []
        excluded: list[StaffKey] = []
        for aggregate in aggregates:
            try:
                scores.append(self.score(aggregate))
            except InsufficientSample as e:
                excluded.append(e.staff_id)

        # Worst first so attention-needing staff surface at the top
        scores.sort(key=lambda result: (result.composite, result.display_name, result.staff_id))

        if excluded:
            logger.info(
                "Staff excluded from scoring",
                excluded=len(excluded),
                scored=len(scores),
                min_appointments=self.min_appointments,
            )
        return ScoringOutcome(scores=scores, excluded=excluded)


composite_scorer = CompositeScorer()
