"""Player scoring: feature derivation and the points ensemble."""

from .features import FeatureVector, build_features
from .model import ScoringModel, confidence_score, volatility_score
from .predictors import (
    EnsembleMember,
    EnsemblePredictor,
    FeedForwardPredictor,
    KernelPredictor,
    LinearPredictor,
    PredictorStrategy,
    ResidualBoostPredictor,
    RuleForestPredictor,
)

__all__ = [
    "EnsembleMember",
    "EnsemblePredictor",
    "FeatureVector",
    "FeedForwardPredictor",
    "KernelPredictor",
    "LinearPredictor",
    "PredictorStrategy",
    "ResidualBoostPredictor",
    "RuleForestPredictor",
    "ScoringModel",
    "build_features",
    "confidence_score",
    "volatility_score",
]
