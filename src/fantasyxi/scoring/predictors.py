"""Fixed-weight predictors combined into the points ensemble.

Each predictor maps a :class:`FeatureVector` to a raw points estimate. The
weights are hand-set heuristics; any trained model exposing the same
``name`` / ``predict`` pair can replace a member without touching callers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

from fantasyxi.models.player import Role

from .features import FeatureVector, clamp


class PredictorStrategy(Protocol):
    name: str

    def predict(self, features: FeatureVector) -> float:
        ...


def _relu(value: float) -> float:
    return max(0.0, value)


class LinearPredictor:
    name = "linear"

    weights = {
        "recent_form": 15.0,
        "consistency": 12.0,
        "versatility": 10.0,
        "venue_fit": 8.0,
        "pitch_fit": 7.0,
        "weather_fit": 6.0,
        "opposition_strength": 5.0,
        "head_to_head": 4.0,
        "captaincy": 3.0,
    }

    def predict(self, features: FeatureVector) -> float:
        score = features.base_points * 0.5
        for attribute, weight in self.weights.items():
            score += getattr(features, attribute) * weight
        score += features.dream_team_pct * 0.25
        score += features.selection_pct * 0.15
        score += features.credits * 1.5

        # Interaction terms.
        score += features.recent_form * features.versatility * 8.0
        score += features.venue_fit * features.consistency * 6.0
        score += features.pitch_fit * features.opposition_strength * 4.0
        if features.credits > 0:
            score += (features.base_points / features.credits) * 5.0
        return max(0.0, score)


class RuleForestPredictor:
    """Average of five single-feature decision trees with tiered bonuses."""

    name = "forest"

    # (attribute, ((threshold, bonus), ...), default bonus); first matching tier wins.
    trees: Tuple[Tuple[str, Tuple[Tuple[float, float], ...], float], ...] = (
        ("recent_form", ((0.7, 15.0), (0.5, 8.0)), 2.0),
        ("consistency", ((0.8, 12.0), (0.6, 6.0)), 1.0),
        ("venue_fit", ((0.7, 10.0), (0.5, 5.0)), 0.0),
        ("opposition_strength", ((0.6, 8.0), (0.4, 4.0)), 0.0),
        ("versatility", ((0.8, 7.0), (0.6, 3.0)), 0.0),
    )

    def predict(self, features: FeatureVector) -> float:
        total = 0.0
        for attribute, tiers, default in self.trees:
            value = getattr(features, attribute)
            bonus = default
            for threshold, tier_bonus in tiers:
                if value > threshold:
                    bonus = tier_bonus
                    break
            total += features.base_points + bonus
        return total / len(self.trees)


class FeedForwardPredictor:
    """Tiny two-hidden-layer ReLU network with hand-initialised weights."""

    name = "neural"

    # Sparse layer definitions: one tuple of (input index, weight) per unit.
    hidden_1: Tuple[Tuple[Tuple[int, float], ...], ...] = (
        ((0, 0.8), (1, 0.6), (2, 0.4), (3, 0.2)),
        ((1, 0.9), (2, 0.7), (4, 0.5), (5, 0.3)),
        ((2, 0.8), (3, 0.8), (6, 0.4), (7, 0.2)),
        ((4, 0.9), (5, 0.6), (0, 0.5), (1, 0.3)),
    )
    hidden_2: Tuple[Tuple[Tuple[int, float], ...], ...] = (
        ((0, 0.9), (1, 0.7), (2, 0.5)),
        ((1, 0.8), (2, 0.8), (3, 0.6)),
    )
    output: Tuple[Tuple[int, float], ...] = ((0, 0.8), (1, 0.6))
    output_scale = 80.0

    @staticmethod
    def _layer(inputs: Sequence[float], units) -> list[float]:
        return [_relu(sum(inputs[index] * weight for index, weight in unit)) for unit in units]

    def predict(self, features: FeatureVector) -> float:
        inputs = [
            features.recent_form,
            features.consistency,
            features.versatility,
            features.venue_fit,
            features.pitch_fit,
            features.opposition_strength,
            features.dream_team_pct / 100.0,
            features.selection_pct / 100.0,
        ]
        first = self._layer(inputs, self.hidden_1)
        second = self._layer(first, self.hidden_2)
        out = _relu(sum(second[index] * weight for index, weight in self.output)) * self.output_scale
        return features.base_points * 0.4 + out * 0.6


class ResidualBoostPredictor:
    name = "boosting"

    @staticmethod
    def _role_multiplier(features: FeatureVector) -> float:
        if features.role is Role.BATTER:
            return 1.0 + features.venue_fit * 0.2 + features.pitch_fit * 0.15
        if features.role is Role.BOWLER:
            return 1.0 + features.weather_fit * 0.2 + features.opposition_strength * 0.15
        if features.role is Role.ALL_ROUNDER:
            return 1.0 + features.versatility * 0.3 + features.consistency * 0.1
        return 1.0 + features.recent_form * 0.2 + features.captaincy * 0.1

    def predict(self, features: FeatureVector) -> float:
        prediction = features.base_points * 0.6

        form_residual = 15.0 if features.recent_form > 0.7 else (-10.0 if features.recent_form < 0.3 else 0.0)
        prediction += form_residual * 0.3

        consistency_residual = 8.0 if features.consistency > 0.8 else (-5.0 if features.consistency < 0.4 else 0.0)
        prediction += consistency_residual * 0.25

        venue_residual = 6.0 if features.venue_fit > 0.7 else (-4.0 if features.venue_fit < 0.3 else 0.0)
        prediction += venue_residual * 0.2

        return max(0.0, prediction * self._role_multiplier(features))


class KernelPredictor:
    """Gaussian-kernel similarity to a few high-performing reference profiles."""

    name = "kernel"

    support_vectors: Tuple[Tuple[Tuple[float, float, float], float], ...] = (
        ((0.8, 0.7, 0.6), 0.5),
        ((0.6, 0.8, 0.7), 0.3),
        ((0.7, 0.6, 0.8), 0.2),
    )
    gamma = 0.1

    def predict(self, features: FeatureVector) -> float:
        vector = (features.recent_form, features.consistency, features.versatility)
        prediction = features.base_points * 0.7
        for support, weight in self.support_vectors:
            distance_sq = sum((a - b) ** 2 for a, b in zip(vector, support))
            prediction += weight * math.exp(-self.gamma * distance_sq) * 30.0
        return prediction


@dataclass(frozen=True)
class EnsembleMember:
    predictor: PredictorStrategy
    base_weight: float
    confidence_weight: float = 0.0
    uncertainty_weight: float = 0.0

    def weight(self, confidence: float) -> float:
        return self.base_weight + self.confidence_weight * confidence + self.uncertainty_weight * (1.0 - confidence)


def default_members() -> Tuple[EnsembleMember, ...]:
    return (
        EnsembleMember(LinearPredictor(), 0.25, confidence_weight=0.1),
        EnsembleMember(RuleForestPredictor(), 0.20, uncertainty_weight=0.1),
        EnsembleMember(FeedForwardPredictor(), 0.20),
        EnsembleMember(ResidualBoostPredictor(), 0.20),
        EnsembleMember(KernelPredictor(), 0.15),
    )


class EnsemblePredictor:
    """Dynamically weighted blend of its members, clamped to 0-100 points."""

    name = "ensemble"
    ceiling = 100.0

    def __init__(self, members: Sequence[EnsembleMember] | None = None):
        self.members: Tuple[EnsembleMember, ...] = tuple(members) if members is not None else default_members()
        if not self.members:
            raise ValueError("Ensemble needs at least one member")

    def breakdown(self, features: FeatureVector) -> dict[str, float]:
        return {member.predictor.name: member.predictor.predict(features) for member in self.members}

    def predict(self, features: FeatureVector) -> float:
        confidence = features.confidence_weight
        total = 0.0
        total_weight = 0.0
        for member in self.members:
            weight = member.weight(confidence)
            total += member.predictor.predict(features) * weight
            total_weight += weight
        if total_weight <= 0:
            return 0.0
        return clamp(total / total_weight, 0.0, self.ceiling)
