"""Batch lineup generation: strategy dispatch, per-run search and fallbacks."""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
import random
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from fantasyxi.config.roster import RoleShape, RosterConstraints, get_rules
from fantasyxi.config.settings import OptimizerSettings, RiskProfile
from fantasyxi.exceptions import InfeasiblePool
from fantasyxi.models.lineup import Lineup, LineupPlayer
from fantasyxi.models.player import MatchContext, Player
from fantasyxi.models.scored import ScoredPlayer
from fantasyxi.pool.filtering import AttributeRange, check_attributes
from fantasyxi.pool.summary import BatchStatistics, summarize_batch
from fantasyxi.scoring.model import ScoringModel
from fantasyxi.validation.validator import shape_of, total_credits, validate

from .fitness import describe_lineup, diversity_score, expected_points, team_confidence, team_risk
from .genetic import GeneticOptimizer, build_fallback, eligible_only
from .leaders import LeadershipSelector
from .presets import PresetCatalog
from .strategies import CandidatePool, GenerationStrategy, strategy_for_request

logger = logging.getLogger("uvicorn.error")

GenerationMode = Literal["auto", "plain", "core-hedge", "stat-filter", "preset", "role-split"]

MAX_LINEUPS = 50


class CaptainCombo(BaseModel):
    captain_id: str
    vice_captain_id: str
    percentage: float = Field(ge=0.0, le=100.0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _distinct_pair(self) -> "CaptainCombo":
        if self.captain_id == self.vice_captain_id:
            raise ValueError("Captain and vice-captain must be different players")
        return self


class OptimizationRequest(BaseModel):
    risk_profile: RiskProfile = "balanced"
    lineup_count: int = Field(default=1, ge=1, le=MAX_LINEUPS)
    mode: GenerationMode = "auto"
    core_player_ids: List[str] = Field(default_factory=list)
    hedge_player_ids: List[str] = Field(default_factory=list)
    hedge_percentage: float = Field(default=50.0, ge=0.0, le=100.0)
    differential_player_ids: List[str] = Field(default_factory=list)
    differential_lineups: int = Field(default=2, ge=1, le=2)
    exclude_player_ids: List[str] = Field(default_factory=list)
    filters: Dict[str, AttributeRange] = Field(default_factory=dict)
    preset_id: Optional[str] = None
    role_shape: Optional[str] = None
    team_split: Optional[Tuple[int, int]] = None
    captain_id: Optional[str] = None
    vice_captain_id: Optional[str] = None
    captain_combos: List[CaptainCombo] = Field(default_factory=list)
    seed: int = 0
    workers: int = Field(default=1, ge=1, le=32)

    model_config = ConfigDict(frozen=True)

    @field_validator("filters")
    @classmethod
    def _known_filters(cls, value: Dict[str, AttributeRange]) -> Dict[str, AttributeRange]:
        try:
            check_attributes(value)
        except KeyError as exc:
            raise ValueError(str(exc.args[0])) from exc
        return value

    @field_validator("role_shape")
    @classmethod
    def _shape_label(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return RoleShape.parse(value).label

    @field_validator("team_split")
    @classmethod
    def _split_counts(cls, value: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if value is not None and min(value) < 0:
            raise ValueError("Team split counts cannot be negative")
        return value

    @field_validator("captain_combos")
    @classmethod
    def _combo_share(cls, value: List[CaptainCombo]) -> List[CaptainCombo]:
        if sum(combo.percentage for combo in value) > 100.0 + 1e-9:
            raise ValueError("Captain combo percentages cannot add up to more than 100")
        return value


def captaincy_plan(combos: Sequence[CaptainCombo], total: int) -> List[Optional[CaptainCombo]]:
    """Assign each combo to a consecutive block of ``floor(pct * total + 0.5)`` lineups.

    Lineups left over after every block are ``None`` and use the normal
    captaincy rules.
    """

    plan: List[Optional[CaptainCombo]] = []
    for combo in combos:
        quota = math.floor(combo.percentage / 100.0 * total + 0.5)
        plan.extend([combo] * quota)
    plan = plan[:total]
    return plan + [None] * (total - len(plan))


@dataclass(frozen=True)
class RunFailure:
    index: int
    reason: str
    recovery: str = ""


@dataclass
class BatchOutput:
    lineups: List[Lineup]
    stats: BatchStatistics
    failures: List[RunFailure] = field(default_factory=list)


def _run_seed(seed: int, index: int) -> int:
    return seed * 1_000_003 + index


def _perturbation_window(percentile: float, pct25: float, pct75: float) -> float:
    """Return the max fractional perturbation for a given percentile."""
    if percentile <= 0.25:
        t = percentile / 0.25
        return pct25 * (1.5 - 0.5 * t)
    if percentile >= 0.75:
        t = (percentile - 0.75) / 0.25
        return pct75 * (1.0 - 0.5 * t)
    t = (percentile - 0.25) / 0.5
    return pct25 + (pct75 - pct25) * t


def perturbation_bias(
    pool: Sequence[ScoredPlayer],
    rng: random.Random,
    *,
    percentile_25: float,
    percentile_75: float,
    base: Optional[Mapping[str, float]] = None,
) -> Optional[Dict[str, float]]:
    """Per-run multipliers nudging predicted points up or down.

    Lower-ranked players get wider windows than the favourites. Multiplied
    into ``base`` when one is given.
    """

    if max(percentile_25, percentile_75) <= 0.0 or not pool:
        return dict(base) if base else None

    ranked = sorted(pool, key=lambda player: (player.predicted_points, player.player_id))
    max_rank = max(len(ranked) - 1, 1)
    factors: Dict[str, float] = {}
    for rank, player in enumerate(ranked):
        magnitude = max(0.0, _perturbation_window(rank / max_rank, percentile_25, percentile_75))
        offset = max(-0.99, min(0.99, rng.uniform(-magnitude, magnitude))) if magnitude > 0 else 0.0
        factors[player.player_id] = (base or {}).get(player.player_id, 1.0) * (1.0 + offset)
    return factors


class _GenerationJob:
    def __init__(
        self,
        generator: "LineupGenerator",
        pool: Sequence[ScoredPlayer],
        base_pool: Sequence[ScoredPlayer],
        strategy: GenerationStrategy,
        request: OptimizationRequest,
        index: int,
        total: int,
    ):
        self.generator = generator
        self.pool = list(pool)
        self.base_pool = list(base_pool)
        self.strategy = strategy
        self.request = request
        self.index = index
        self.total = total


def _run_generation_job(job: _GenerationJob) -> Tuple[Lineup, Optional[RunFailure]]:
    return job.generator.run_one(
        job.pool,
        job.base_pool,
        job.strategy,
        job.request,
        index=job.index,
        total=job.total,
    )


class LineupGenerator:
    """Runs N independent optimizer passes and assembles finished lineups."""

    def __init__(
        self,
        constraints: Optional[RosterConstraints] = None,
        settings: Optional[OptimizerSettings] = None,
        scoring_model: Optional[ScoringModel] = None,
        leadership: Optional[LeadershipSelector] = None,
        presets: Optional[PresetCatalog] = None,
    ):
        self.constraints = constraints or get_rules()
        self.settings = settings or OptimizerSettings()
        self.scoring_model = scoring_model or ScoringModel()
        self.leadership = leadership or LeadershipSelector()
        self.presets = presets or PresetCatalog()

    def _fallback(
        self,
        candidate: CandidatePool,
        base_pool: Sequence[ScoredPlayer],
    ) -> Tuple[List[ScoredPlayer], str]:
        attempts = (
            (candidate.players, candidate.constraints, candidate.locked_ids, "fallback with locks"),
            (base_pool, self.constraints, candidate.locked_ids, "fallback on full pool with locks"),
            (base_pool, self.constraints, (), "fallback without locks"),
        )
        last_error: Optional[InfeasiblePool] = None
        for players, constraints, locked, label in attempts:
            try:
                return build_fallback(players, constraints, locked), label
            except InfeasiblePool as exc:
                last_error = exc
        raise last_error or InfeasiblePool()

    def run_one(
        self,
        pool: Sequence[ScoredPlayer],
        base_pool: Sequence[ScoredPlayer],
        strategy: GenerationStrategy,
        request: OptimizationRequest,
        *,
        index: int,
        total: int,
    ) -> Tuple[Lineup, Optional[RunFailure]]:
        """Build lineup ``index`` of ``total``; never raises for a feasible base pool."""

        rng = random.Random(_run_seed(request.seed, index))
        candidate = strategy.select_candidate_pool(pool, index, total)
        captain_id, vice_captain_id = request.captain_id, request.vice_captain_id
        combo = captaincy_plan(request.captain_combos, total)[index] if request.captain_combos else None
        if combo is not None:
            captain_id, vice_captain_id = combo.captain_id, combo.vice_captain_id
            present = {player.player_id for player in candidate.players}
            pair = tuple(
                pid for pid in (captain_id, vice_captain_id) if pid in present and pid not in candidate.locked_ids
            )
            candidate = replace(candidate, locked_ids=candidate.locked_ids + pair)
        warnings = list(candidate.warnings)
        is_fallback = candidate.is_fallback
        failure: Optional[RunFailure] = None
        fitness_value = 0.0

        bias = perturbation_bias(
            candidate.players,
            rng,
            percentile_25=self.settings.perturbation_p25,
            percentile_75=self.settings.perturbation_p75,
            base=candidate.bias,
        )
        optimizer = GeneticOptimizer(candidate.constraints, self.settings)
        try:
            result = optimizer.optimize(
                candidate.players,
                request.risk_profile,
                rng,
                locked_ids=candidate.locked_ids,
                bias=bias,
                budget_target=candidate.budget_target,
            )
            players = list(result.players)
            fitness_value = result.fitness
            if not result.risk_filtered:
                warnings.append(f"Risk filter skipped for {request.risk_profile} profile")
        except InfeasiblePool as exc:
            players, recovery = self._fallback(candidate, base_pool)
            logger.warning("Lineup %s/%s failed (%s); using %s", index + 1, total, exc.message, recovery)
            failure = RunFailure(index=index, reason=exc.message, recovery=recovery)
            is_fallback = True
            warnings.append(f"{recovery}: {exc.message}")

        pick = self.leadership.select(
            players,
            players,
            index,
            captain_id=captain_id,
            vice_captain_id=vice_captain_id,
        )
        check = validate(players, self.constraints)
        rationale = describe_lineup(players, request.risk_profile, strategy=strategy.name)
        if failure is not None:
            rationale = f"Fallback lineup ({failure.recovery}) after: {failure.reason}. {rationale}"
        elif is_fallback:
            rationale = f"Fallback lineup. {rationale}"

        lineup = Lineup(
            lineup_id=f"L{index + 1:03}",
            players=tuple(
                LineupPlayer(
                    player_id=player.player_id,
                    name=player.name,
                    team=player.team,
                    role=player.role,
                    credits=player.credits,
                    predicted_points=player.predicted_points,
                    captaincy=player.captaincy,
                    ownership=player.ownership,
                )
                for player in players
            ),
            captain_id=pick.captain_id,
            vice_captain_id=pick.vice_captain_id,
            total_credits=total_credits(players),
            role_counts=shape_of(players).as_dict(),
            expected_points=expected_points(players),
            risk_score=team_risk(players),
            confidence_score=team_confidence(players),
            diversity_score=diversity_score(players),
            fitness=fitness_value,
            strategy=strategy.name,
            leadership_strategy=pick.strategy,
            rationale=rationale,
            is_fallback=is_fallback,
            warnings=tuple(warnings) + check.warnings,
        )
        return strategy.post_process(lineup, index), failure

    def generate_batch(
        self,
        pool: Sequence[ScoredPlayer],
        request: OptimizationRequest,
        *,
        teams: Sequence[str] = (),
    ) -> BatchOutput:
        """Generate ``request.lineup_count`` lineups; raises only for a hopeless pool."""

        eligible = eligible_only(pool)
        excluded = set(request.exclude_player_ids)
        base_pool = [player for player in eligible if player.player_id not in excluded]
        # Every run can fall back to this, so checking it once guarantees N lineups.
        build_fallback(base_pool, self.constraints)

        strategy = strategy_for_request(request, teams, constraints=self.constraints, catalog=self.presets)
        total = request.lineup_count
        workers = max(1, min(request.workers, total))
        run_start = time.perf_counter()
        logger.info(
            "Starting lineup generation - total=%s, strategy=%s, risk=%s, workers=%s, pool=%s, seed=%s",
            total,
            strategy.name,
            request.risk_profile,
            workers,
            len(eligible),
            request.seed,
        )

        jobs = [_GenerationJob(self, eligible, base_pool, strategy, request, index, total) for index in range(total)]
        if workers == 1:
            outcomes = []
            for job in jobs:
                lineup_start = time.perf_counter()
                outcomes.append(_run_generation_job(job))
                logger.info(
                    "Built lineup %s/%s - expected %.2f, credits %.1f (%.2fs, total %.2fs)",
                    job.index + 1,
                    total,
                    outcomes[-1][0].expected_points,
                    outcomes[-1][0].total_credits,
                    time.perf_counter() - lineup_start,
                    time.perf_counter() - run_start,
                )
        else:
            ctx = mp.get_context("spawn")
            with ctx.Pool(processes=workers) as process_pool:
                # map preserves job order, so results stay indexed by run.
                outcomes = process_pool.map(_run_generation_job, jobs)

        lineups = [lineup for lineup, _ in outcomes]
        failures = [failure for _, failure in outcomes if failure is not None]
        stats = summarize_batch(lineups, len(eligible))
        logger.info(
            "Completed %s lineups in %.2fs - %s captains, utilization %.1f%%, mean overlap %.2f, fallbacks %s",
            len(lineups),
            time.perf_counter() - run_start,
            stats.unique_captains,
            stats.pool_utilization,
            stats.mean_overlap,
            stats.fallback_count,
        )
        return BatchOutput(lineups=lineups, stats=stats, failures=failures)


def build_lineups(
    players: Sequence[Player],
    context: MatchContext,
    request: OptimizationRequest,
    *,
    constraints: Optional[RosterConstraints] = None,
    settings: Optional[OptimizerSettings] = None,
    scoring_model: Optional[ScoringModel] = None,
    leadership: Optional[LeadershipSelector] = None,
) -> BatchOutput:
    """Score the raw pool for this match and generate a batch of lineups."""

    generator = LineupGenerator(
        constraints=constraints,
        settings=settings,
        scoring_model=scoring_model,
        leadership=leadership,
    )
    scored = generator.scoring_model.score(players, context)
    teams = tuple(team for team in (context.team1, context.team2) if team)
    return generator.generate_batch(scored, request, teams=teams)
