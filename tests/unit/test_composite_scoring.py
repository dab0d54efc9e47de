from decimal import Decimal

import pytest

from app.features.workforce_analytics.domain.models import StaffMetricAggregate
from app.features.workforce_analytics.errors import InsufficientSample
from app.features.workforce_analytics.pipeline.scoring.service import (
    SCORE_WEIGHTS_V1,
    CompositeScorer,
    ScoreWeights,
    classify_tier,
    normalize_tip_rate,
)


def _aggregate(staff_id="ext-1", name="Ana", appointments=10, **overrides):
    aggregate = StaffMetricAggregate(
        staff_id=staff_id,
        display_name=name,
        appointment_count=appointments,
        rebook_rate=40.0,
        tip_rate=10.0,
        retention_rate=50.0,
        retail_attachment=20.0,
    )
    for key, value in overrides.items():
        setattr(aggregate, key, value)
    return aggregate


def test_v1_weights_sum_to_exactly_one():
    weights = SCORE_WEIGHTS_V1
    assert weights.rebook + weights.tip + weights.retention + weights.retail == Decimal("1")
    assert weights.version == "v1"


def test_weights_not_summing_to_one_are_rejected():
    with pytest.raises(ValueError, match="sum to"):
        ScoreWeights(
            version="bad",
            rebook=Decimal("0.40"),
            tip=Decimal("0.30"),
            retention=Decimal("0.20"),
            retail=Decimal("0.15"),
        )


def test_negative_weights_are_rejected():
    with pytest.raises(ValueError):
        ScoreWeights(
            version="bad",
            rebook=Decimal("1.10"),
            tip=Decimal("-0.10"),
            retention=Decimal("0"),
            retail=Decimal("0"),
        )


@pytest.mark.parametrize(
    ("score", "tier"),
    [
        (0, "needs_attention"),
        (49.99, "needs_attention"),
        (50.00, "watch"),
        (69.99, "watch"),
        (70.00, "strong"),
        (100, "strong"),
    ],
)
def test_tier_boundaries_are_exact(score, tier):
    assert classify_tier(score) == tier


@pytest.mark.parametrize(("tip_rate", "expected"), [(10.0, 40.0), (25.0, 100.0), (40.0, 100.0), (0.0, 0.0)])
def test_tip_rate_normalized_against_ceiling(tip_rate, expected):
    assert normalize_tip_rate(tip_rate) == pytest.approx(expected)


def test_score_combines_weighted_sub_scores():
    result = CompositeScorer().score(_aggregate())

    # 40*.35 + 40*.30 + 50*.20 + 20*.15 = 14 + 12 + 10 + 3
    assert result.rebook_score == pytest.approx(40.0)
    assert result.tip_score == pytest.approx(40.0)
    assert result.composite == 39
    assert result.tier == "needs_attention"
    assert result.sample_size == 10
    assert result.weights_version == "v1"


def test_tier_follows_rounded_composite():
    # 71*.35 + 0 + 50*.20 + 100*.15 = 49.85, which rounds to 50
    aggregate = _aggregate(rebook_rate=71.0, tip_rate=0.0, retention_rate=50.0, retail_attachment=100.0)
    result = CompositeScorer().score(aggregate)

    assert result.composite == 50
    assert result.tier == "watch"


def test_composite_stays_within_bounds():
    high = CompositeScorer().score(
        _aggregate(rebook_rate=150.0, tip_rate=90.0, retention_rate=120.0, retail_attachment=101.0)
    )
    low = CompositeScorer().score(
        _aggregate(rebook_rate=0.0, tip_rate=0.0, retention_rate=0.0, retail_attachment=0.0)
    )

    assert high.composite == 100
    assert high.tier == "strong"
    assert low.composite == 0


def test_insufficient_sample_raises():
    with pytest.raises(InsufficientSample) as exc_info:
        CompositeScorer().score(_aggregate(appointments=4))

    assert exc_info.value.sample_size == 4
    assert exc_info.value.minimum == 5


def test_score_all_omits_small_samples_and_sorts_worst_first():
    aggregates = [
        _aggregate("ext-1", "Ana", rebook_rate=90.0),
        _aggregate("ext-2", "Bo", rebook_rate=10.0),
        _aggregate("ext-3", "Cy", appointments=3),
        _aggregate("ext-4", "Al", rebook_rate=10.0),
    ]

    outcome = CompositeScorer().score_all(aggregates)

    assert [score.staff_id for score in outcome.scores] == ["ext-4", "ext-2", "ext-1"]
    assert outcome.excluded == ["ext-3"]
