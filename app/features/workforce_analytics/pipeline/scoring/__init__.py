"""
Composite scoring package.

Normalizes staff metrics and ranks staff worst first.
"""

from .service import SCORE_WEIGHTS_V1, CompositeScorer, ScoreWeights, composite_scorer

__all__ = ["SCORE_WEIGHTS_V1", "CompositeScorer", "ScoreWeights", "composite_scorer"]
