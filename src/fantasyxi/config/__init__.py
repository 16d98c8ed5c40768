"""Configuration helpers for roster rules and optimizer tunables."""

from .roster import (
    COMMON_SHAPES,
    DEFAULT_RULES,
    RoleBounds,
    RoleShape,
    RosterConstraints,
    common_shapes,
    get_rules,
    iter_rules,
)
from .settings import (
    RISK_PROFILES,
    FitnessWeights,
    OptimizerSettings,
    RiskProfile,
    RiskThreshold,
)

__all__ = [
    "COMMON_SHAPES",
    "DEFAULT_RULES",
    "RISK_PROFILES",
    "FitnessWeights",
    "OptimizerSettings",
    "RiskProfile",
    "RiskThreshold",
    "RoleBounds",
    "RoleShape",
    "RosterConstraints",
    "common_shapes",
    "get_rules",
    "iter_rules",
]
