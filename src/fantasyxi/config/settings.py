"""Tunable optimizer parameters with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Literal, Mapping

logger = logging.getLogger("uvicorn.error")

RiskProfile = Literal["conservative", "balanced", "aggressive"]
RISK_PROFILES: tuple[str, ...] = ("conservative", "balanced", "aggressive")

_ENV_PREFIX = "FANTASYXI_"


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


@dataclass(frozen=True)
class RiskThreshold:
    max_volatility: float
    min_consistency: float


DEFAULT_RISK_THRESHOLDS: Mapping[str, RiskThreshold] = {
    "conservative": RiskThreshold(max_volatility=0.3, min_consistency=0.7),
    "balanced": RiskThreshold(max_volatility=0.5, min_consistency=0.5),
    "aggressive": RiskThreshold(max_volatility=0.8, min_consistency=0.3),
}


@dataclass(frozen=True)
class FitnessWeights:
    points: float = 0.40
    risk: float = 0.20
    diversity: float = 0.15
    confidence: float = 0.15
    budget: float = 0.10


@dataclass(frozen=True)
class OptimizerSettings:
    population_size: int = 100
    generations: int = 50
    elite_fraction: float = 0.2
    tournament_size: int = 3
    mutation_rate: float = 0.1
    # Upper bound on offspring attempts per generation, as a multiple of population size.
    offspring_attempts_factor: int = 20
    # Upper bound on random candidates tried while seeding, as a multiple of population size.
    init_attempts_factor: int = 10
    points_scale: float = 500.0
    # Max fractional nudge to predicted points per run, for the bottom and top
    # quartile of the pool; keeps independent runs from converging on one lineup.
    perturbation_p25: float = 0.25
    perturbation_p75: float = 0.15
    fitness_weights: FitnessWeights = field(default_factory=FitnessWeights)
    risk_thresholds: Mapping[str, RiskThreshold] = field(default_factory=lambda: dict(DEFAULT_RISK_THRESHOLDS))

    def threshold(self, risk_profile: str) -> RiskThreshold:
        if risk_profile not in self.risk_thresholds:
            raise KeyError(f"Unknown risk profile {risk_profile!r}")
        return self.risk_thresholds[risk_profile]

    def with_overrides(self, **changes) -> "OptimizerSettings":
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "OptimizerSettings":
        """Build settings from ``FANTASYXI_*`` environment variables."""

        base = cls()
        weights = FitnessWeights(
            points=_env_float(f"{_ENV_PREFIX}WEIGHT_POINTS", base.fitness_weights.points, clamp_min=0.0),
            risk=_env_float(f"{_ENV_PREFIX}WEIGHT_RISK", base.fitness_weights.risk, clamp_min=0.0),
            diversity=_env_float(f"{_ENV_PREFIX}WEIGHT_DIVERSITY", base.fitness_weights.diversity, clamp_min=0.0),
            confidence=_env_float(f"{_ENV_PREFIX}WEIGHT_CONFIDENCE", base.fitness_weights.confidence, clamp_min=0.0),
            budget=_env_float(f"{_ENV_PREFIX}WEIGHT_BUDGET", base.fitness_weights.budget, clamp_min=0.0),
        )
        thresholds = {}
        for profile, default in DEFAULT_RISK_THRESHOLDS.items():
            key = profile.upper()
            thresholds[profile] = RiskThreshold(
                max_volatility=_env_float(
                    f"{_ENV_PREFIX}{key}_MAX_VOLATILITY", default.max_volatility, clamp_min=0.0, clamp_max=1.0
                ),
                min_consistency=_env_float(
                    f"{_ENV_PREFIX}{key}_MIN_CONSISTENCY", default.min_consistency, clamp_min=0.0, clamp_max=1.0
                ),
            )
        return cls(
            population_size=_env_int(f"{_ENV_PREFIX}POPULATION", base.population_size, min_value=2),
            generations=_env_int(f"{_ENV_PREFIX}GENERATIONS", base.generations, min_value=0),
            elite_fraction=_env_float(f"{_ENV_PREFIX}ELITE_FRACTION", base.elite_fraction, clamp_min=0.0, clamp_max=1.0),
            tournament_size=_env_int(f"{_ENV_PREFIX}TOURNAMENT_SIZE", base.tournament_size, min_value=1),
            mutation_rate=_env_float(f"{_ENV_PREFIX}MUTATION_RATE", base.mutation_rate, clamp_min=0.0, clamp_max=1.0),
            offspring_attempts_factor=_env_int(
                f"{_ENV_PREFIX}OFFSPRING_ATTEMPTS", base.offspring_attempts_factor, min_value=1
            ),
            init_attempts_factor=_env_int(f"{_ENV_PREFIX}INIT_ATTEMPTS", base.init_attempts_factor, min_value=1),
            points_scale=_env_float(f"{_ENV_PREFIX}POINTS_SCALE", base.points_scale, clamp_min=1.0),
            perturbation_p25=_env_float(
                f"{_ENV_PREFIX}PERTURBATION_P25", base.perturbation_p25, clamp_min=0.0, clamp_max=0.9
            ),
            perturbation_p75=_env_float(
                f"{_ENV_PREFIX}PERTURBATION_P75", base.perturbation_p75, clamp_min=0.0, clamp_max=0.9
            ),
            fitness_weights=weights,
            risk_thresholds=thresholds,
        )
