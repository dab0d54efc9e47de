"""
Threshold and trend evaluation package.
"""

from .service import ThresholdEvaluator, percent_change, prorate_threshold, threshold_evaluator

__all__ = ["ThresholdEvaluator", "percent_change", "prorate_threshold", "threshold_evaluator"]
