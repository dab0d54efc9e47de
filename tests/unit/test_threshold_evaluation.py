import pytest

from app.features.workforce_analytics.domain.models import ThresholdPolicy
from app.features.workforce_analytics.pipeline.evaluation.service import (
    ThresholdEvaluator,
    percent_change,
    prorate_threshold,
)


@pytest.fixture
def evaluator():
    return ThresholdEvaluator()


def test_prorated_threshold_flags_partial_history(evaluator):
    policy = ThresholdPolicy(minimum_revenue=3000.0, evaluation_period_days=30, alerts_enabled=True)

    result = evaluator.evaluate(800.0, None, policy, days_with_data=10, staff_id="ext-1")

    assert result.prorated_threshold == pytest.approx(1000.0)
    assert result.is_below_threshold is True
    assert result.staff_id == "ext-1"


def test_zero_prior_gives_null_percent_change(evaluator):
    result = evaluator.evaluate(500.0, 0.0, ThresholdPolicy(), days_with_data=30)

    assert result.percent_change is None
    assert result.prior_value == 0.0


@pytest.mark.parametrize(
    ("current", "prior", "expected"),
    [(150.0, 100.0, 50.0), (50.0, 100.0, -50.0), (0.0, 100.0, -100.0), (-50.0, -100.0, -50.0)],
)
def test_percent_change_formula(current, prior, expected):
    assert percent_change(current, prior) == pytest.approx(expected)


def test_percent_change_null_only_for_zero_prior():
    assert percent_change(0.0, 0.0) is None
    assert percent_change(1.0, 0.0) is None
    assert percent_change(0.0, 0.01) == pytest.approx(-100.0)


def test_below_threshold_needs_seven_days(evaluator):
    policy = ThresholdPolicy(minimum_revenue=3000.0, evaluation_period_days=30, alerts_enabled=True)

    result = evaluator.evaluate(0.0, None, policy, days_with_data=6)

    assert result.prorated_threshold == pytest.approx(600.0)
    assert result.is_below_threshold is False


def test_disabled_alerts_never_flag(evaluator):
    policy = ThresholdPolicy(minimum_revenue=3000.0, evaluation_period_days=30, alerts_enabled=False)

    result = evaluator.evaluate(0.0, 100.0, policy, days_with_data=30)

    assert result.is_below_threshold is False
    assert result.prorated_threshold is None
    assert result.percent_change == pytest.approx(-100.0)


def test_proration_caps_at_full_period():
    policy = ThresholdPolicy(minimum_revenue=6000.0, evaluation_period_days=60, alerts_enabled=True)

    assert prorate_threshold(policy, 90) == pytest.approx(6000.0)
    assert prorate_threshold(policy, 15) == pytest.approx(1500.0)


def test_meeting_the_bar_is_not_below(evaluator):
    policy = ThresholdPolicy(minimum_revenue=900.0, evaluation_period_days=90, alerts_enabled=True)

    result = evaluator.evaluate(300.0, 250.0, policy, days_with_data=30)

    assert result.prorated_threshold == pytest.approx(300.0)
    assert result.is_below_threshold is False
    assert result.percent_change == pytest.approx(20.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"minimum_revenue": -1.0},
        {"evaluation_period_days": 45},
        {"evaluation_period_days": 0},
    ],
)
def test_invalid_policy_is_rejected(kwargs):
    with pytest.raises(ValueError):
        ThresholdPolicy(**kwargs)
