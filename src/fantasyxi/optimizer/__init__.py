"""Lineup search, leadership selection and batch generation."""

from .genetic import GeneticOptimizer, OptimizedLineup, build_fallback, check_feasibility
from .leaders import LEADERSHIP_STRATEGIES, LeadershipPick, LeadershipSelector
from .presets import DEFAULT_PRESETS, PresetCatalog, PresetTemplate
from .service import (
    BatchOutput,
    CaptainCombo,
    LineupGenerator,
    OptimizationRequest,
    RunFailure,
    build_lineups,
    captaincy_plan,
)
from .strategies import (
    CandidatePool,
    CoreHedgeStrategy,
    GenerationStrategy,
    PlainStrategy,
    PresetStrategy,
    RoleSplitStrategy,
    StatFilterStrategy,
    strategy_for_request,
)

__all__ = [
    "DEFAULT_PRESETS",
    "LEADERSHIP_STRATEGIES",
    "BatchOutput",
    "CandidatePool",
    "CaptainCombo",
    "CoreHedgeStrategy",
    "GenerationStrategy",
    "GeneticOptimizer",
    "LeadershipPick",
    "LeadershipSelector",
    "LineupGenerator",
    "OptimizationRequest",
    "OptimizedLineup",
    "PlainStrategy",
    "PresetCatalog",
    "PresetStrategy",
    "PresetTemplate",
    "RoleSplitStrategy",
    "RunFailure",
    "StatFilterStrategy",
    "build_fallback",
    "build_lineups",
    "captaincy_plan",
    "check_feasibility",
    "strategy_for_request",
]
