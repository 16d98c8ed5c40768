"""Batch generation strategies layered on top of the genetic optimizer.

A strategy is chosen once per batch. For every run it narrows the scored pool
(and possibly the roster rules) into a :class:`CandidatePool`, and afterwards
gets a chance to annotate the finished :class:`Lineup`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from fantasyxi.config.roster import RoleShape, RosterConstraints
from fantasyxi.exceptions import FilterExhaustion, InfeasiblePool
from fantasyxi.models.lineup import Lineup
from fantasyxi.models.scored import ScoredPlayer
from fantasyxi.pool.filtering import AttributeRange, filter_pool

from .genetic import check_feasibility, role_shortfall
from .presets import PresetCatalog, PresetTemplate

if TYPE_CHECKING:
    from .service import OptimizationRequest

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class CandidatePool:
    players: Tuple[ScoredPlayer, ...]
    constraints: RosterConstraints
    locked_ids: Tuple[str, ...] = ()
    bias: Optional[Mapping[str, float]] = None
    is_fallback: bool = False
    warnings: Tuple[str, ...] = ()
    budget_target: Optional[float] = None


def _normalize_percentage(value: float) -> float:
    return min(1.0, max(0.0, value) / 100.0)


def _without(pool: Iterable[ScoredPlayer], excluded: Iterable[str]) -> List[ScoredPlayer]:
    skip = set(excluded)
    return [player for player in pool if player.player_id not in skip]


def _known(ids: Iterable[str], pool: Sequence[ScoredPlayer]) -> Tuple[str, ...]:
    present = {player.player_id for player in pool}
    return tuple(pid for pid in dict.fromkeys(ids) if pid in present)


def _completable(pool: Sequence[ScoredPlayer], constraints: RosterConstraints) -> bool:
    return len(pool) >= constraints.squad_size and not role_shortfall(pool, constraints)


def _feasible(
    pool: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    locked: Sequence[ScoredPlayer] = (),
) -> bool:
    try:
        check_feasibility(pool, constraints, locked)
    except InfeasiblePool:
        return False
    return True


class GenerationStrategy:
    """Base variant: the whole pool minus exclusions, with optional core locks."""

    name = "plain"

    def __init__(
        self,
        constraints: RosterConstraints,
        *,
        locked_ids: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
    ):
        self.constraints = constraints
        self.locked_ids = tuple(dict.fromkeys(locked_ids))
        self.exclude_ids = frozenset(exclude_ids) - set(self.locked_ids)

    def select_candidate_pool(self, pool: Sequence[ScoredPlayer], index: int, total: int) -> CandidatePool:
        players = _without(pool, self.exclude_ids)
        return CandidatePool(
            players=tuple(players),
            constraints=self.constraints,
            locked_ids=_known(self.locked_ids, players),
        )

    def post_process(self, lineup: Lineup, index: int) -> Lineup:
        return replace(lineup, strategy=self.name)


class PlainStrategy(GenerationStrategy):
    name = "plain"


class CoreHedgeStrategy(GenerationStrategy):
    """Core players in every lineup, hedges rotated, differentials up front.

    Hedge player ``j`` is locked into lineup ``i`` when
    ``(i + j * offset) % total < floor(percentage * total + 0.5)`` and excluded from
    the others, so each hedge appears in the same number of lineups and the
    hedges are staggered across the batch.
    """

    name = "core-hedge"

    def __init__(
        self,
        constraints: RosterConstraints,
        *,
        core_ids: Iterable[str] = (),
        hedge_ids: Iterable[str] = (),
        hedge_percentage: float = 50.0,
        differential_ids: Iterable[str] = (),
        differential_lineups: int = 2,
        exclude_ids: Iterable[str] = (),
    ):
        super().__init__(constraints, locked_ids=core_ids, exclude_ids=exclude_ids)
        core = set(self.locked_ids)
        self.hedge_ids = tuple(pid for pid in dict.fromkeys(hedge_ids) if pid not in core)
        self.hedge_fraction = _normalize_percentage(hedge_percentage)
        taken = core | set(self.hedge_ids)
        self.differential_ids = tuple(pid for pid in dict.fromkeys(differential_ids) if pid not in taken)
        self.differential_lineups = max(1, min(2, differential_lineups))

    def hedges_for(self, index: int, total: int) -> FrozenSet[str]:
        if total <= 0 or not self.hedge_ids:
            return frozenset()
        quota = math.floor(self.hedge_fraction * total + 0.5)
        offset = max(1, total // len(self.hedge_ids))
        return frozenset(
            pid for slot, pid in enumerate(self.hedge_ids) if (index + slot * offset) % total < quota
        )

    def differentials_for(self, index: int, total: int) -> FrozenSet[str]:
        if index < min(self.differential_lineups, total):
            return frozenset(self.differential_ids)
        return frozenset()

    def select_candidate_pool(self, pool: Sequence[ScoredPlayer], index: int, total: int) -> CandidatePool:
        hedges = self.hedges_for(index, total)
        differentials = self.differentials_for(index, total)
        dropped = (set(self.hedge_ids) - hedges) | (set(self.differential_ids) - differentials)
        players = _without(pool, self.exclude_ids | dropped)
        locked = _known((*self.locked_ids, *sorted(hedges), *sorted(differentials)), players)
        return CandidatePool(players=tuple(players), constraints=self.constraints, locked_ids=locked)

    def post_process(self, lineup: Lineup, index: int) -> Lineup:
        members = set(lineup.player_ids)
        hedged = [pid for pid in self.hedge_ids if pid in members]
        notes = [f"core {sum(pid in members for pid in self.locked_ids)}/{len(self.locked_ids)}"]
        if self.hedge_ids:
            notes.append(f"hedges {', '.join(hedged) or 'none'}")
        if any(pid in members for pid in self.differential_ids):
            notes.append("differential lineup")
        return replace(lineup, strategy=self.name, rationale=f"{lineup.rationale} [{'; '.join(notes)}]")


class StatFilterStrategy(GenerationStrategy):
    """Restrict the pool to attribute ranges, relaxing when they leave too few."""

    name = "stat-filter"

    def __init__(
        self,
        constraints: RosterConstraints,
        *,
        ranges: Mapping[str, AttributeRange],
        locked_ids: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
    ):
        super().__init__(constraints, locked_ids=locked_ids, exclude_ids=exclude_ids)
        self.ranges = dict(ranges)

    def select_candidate_pool(self, pool: Sequence[ScoredPlayer], index: int, total: int) -> CandidatePool:
        players = _without(pool, self.exclude_ids)
        locked = _known(self.locked_ids, players)
        try:
            filtered = filter_pool(players, self.ranges, keep_ids=locked, required=self.constraints.squad_size)
        except FilterExhaustion as exc:
            logger.warning("Lineup %s: %s; relaxing to the unfiltered pool", index + 1, exc.message)
            return CandidatePool(
                players=tuple(players),
                constraints=self.constraints,
                locked_ids=locked,
                is_fallback=True,
                warnings=(f"Filters relaxed: {exc.message}",),
            )
        short = role_shortfall(filtered, self.constraints)
        if short:
            labels = ", ".join(role.label for role in short)
            logger.warning("Lineup %s: filters leave too few %s; relaxing to the unfiltered pool", index + 1, labels)
            return CandidatePool(
                players=tuple(players),
                constraints=self.constraints,
                locked_ids=locked,
                is_fallback=True,
                warnings=(f"Filters relaxed: not enough {labels}",),
            )
        return CandidatePool(players=tuple(filtered), constraints=self.constraints, locked_ids=locked)


class PresetStrategy(GenerationStrategy):
    """Apply a preset's role shape, selection band and player bias."""

    name = "preset"

    def __init__(
        self,
        constraints: RosterConstraints,
        *,
        preset: PresetTemplate,
        teams: Sequence[str] = (),
        locked_ids: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
    ):
        super().__init__(constraints, locked_ids=locked_ids, exclude_ids=exclude_ids)
        self.preset = preset
        self.teams = tuple(teams)
        self.narrowed: Optional[RosterConstraints]
        try:
            self.narrowed = constraints.narrowed_to(preset.shape)
        except ValueError:
            logger.warning(
                "Preset %s shape %s is not legal under %s rules; keeping the base rules",
                preset.preset_id,
                preset.shape.label,
                constraints.name,
            )
            self.narrowed = None

    def select_candidate_pool(self, pool: Sequence[ScoredPlayer], index: int, total: int) -> CandidatePool:
        players = _without(pool, self.exclude_ids)
        locked = _known(self.locked_ids, players)
        keep = set(locked)
        warnings: List[str] = []

        constraints = self.narrowed or self.constraints
        if self.narrowed is not None and not _completable(players, self.narrowed):
            warnings.append(f"Pool cannot fill shape {self.preset.shape.label}; using standard role limits")
            constraints = self.constraints

        banded = [player for player in players if player.player_id in keep or self.preset.in_selection_band(player)]
        if _completable(banded, constraints):
            chosen = banded
        else:
            warnings.append("Selection band relaxed to keep the pool feasible")
            chosen = players
        priced = [player for player in chosen if player.player_id in keep or self.preset.in_credit_band(player)]
        if len(priced) < len(chosen):
            if _feasible(priced, constraints):
                chosen = priced
            else:
                warnings.append("Credit band relaxed to keep the pool feasible")
        for warning in warnings:
            logger.warning("Lineup %s (%s): %s", index + 1, self.preset.preset_id, warning)

        bias: Dict[str, float] = self.preset.bias_map(chosen, self.teams)
        return CandidatePool(
            players=tuple(chosen),
            constraints=constraints,
            locked_ids=locked,
            bias=bias,
            warnings=tuple(warnings),
            budget_target=self.preset.budget_utilization,
        )

    def post_process(self, lineup: Lineup, index: int) -> Lineup:
        return replace(
            lineup,
            strategy=f"{self.name}:{self.preset.preset_id}",
            rationale=f"{lineup.rationale} [preset {self.preset.name}]",
        )


class RoleSplitStrategy(GenerationStrategy):
    """Pin every lineup to a chosen role shape and per-team player split.

    ``team_split`` counts follow ``teams``; when those are not both in the pool
    the first two franchises seen in it are used.
    """

    name = "role-split"

    def __init__(
        self,
        constraints: RosterConstraints,
        *,
        shape: Optional[RoleShape] = None,
        team_split: Optional[Sequence[int]] = None,
        teams: Sequence[str] = (),
        locked_ids: Iterable[str] = (),
        exclude_ids: Iterable[str] = (),
    ):
        super().__init__(constraints, locked_ids=locked_ids, exclude_ids=exclude_ids)
        self.shape = shape
        self.team_split = tuple(team_split) if team_split else None
        self.teams = tuple(teams)
        self.shaped = constraints.narrowed_to(shape) if shape is not None else constraints
        if self.team_split is not None:
            constraints.check_split(self.team_split)

    @property
    def label(self) -> str:
        parts = []
        if self.shape is not None:
            parts.append(f"shape {self.shape.label}")
        if self.team_split is not None:
            parts.append("split " + "/".join(str(count) for count in self.team_split))
        return ", ".join(parts)

    def _split_teams(self, pool: Sequence[ScoredPlayer]) -> Tuple[str, ...]:
        seen = tuple(dict.fromkeys(player.team for player in pool))
        if len(self.teams) == 2 and set(self.teams) <= set(seen):
            return self.teams
        return seen[:2]

    def rules_for(self, pool: Sequence[ScoredPlayer]) -> RosterConstraints:
        """Shape-narrowed rules, with franchise caps when a split is set."""

        if self.team_split is None:
            return self.shaped
        teams = self._split_teams(pool)
        if len(teams) != len(self.team_split):
            raise ValueError(f"Team split needs {len(self.team_split)} teams, pool has {len(teams)}")
        return self.shaped.split_between(teams, self.team_split)

    def select_candidate_pool(self, pool: Sequence[ScoredPlayer], index: int, total: int) -> CandidatePool:
        players = _without(pool, self.exclude_ids)
        locked = _known(self.locked_ids, players)
        warnings: List[str] = []

        try:
            constraints = self.rules_for(players)
        except ValueError as exc:
            warnings.append(f"{exc}; using shape only")
            constraints = self.shaped
        keep = set(locked)
        if not _feasible(players, constraints, [player for player in players if player.player_id in keep]):
            warnings.append(f"Pool cannot fill {self.label}; using standard roster rules")
            constraints = self.constraints
        for warning in warnings:
            logger.warning("Lineup %s (%s): %s", index + 1, self.name, warning)

        return CandidatePool(
            players=tuple(players),
            constraints=constraints,
            locked_ids=locked,
            warnings=tuple(warnings),
        )

    def post_process(self, lineup: Lineup, index: int) -> Lineup:
        return replace(lineup, strategy=self.name, rationale=f"{lineup.rationale} [{self.label}]")


def resolve_mode(request: "OptimizationRequest") -> str:
    if request.mode != "auto":
        return request.mode
    if request.hedge_player_ids or request.differential_player_ids:
        return "core-hedge"
    if request.filters:
        return "stat-filter"
    if request.role_shape or request.team_split:
        return "role-split"
    if request.preset_id:
        return "preset"
    return "plain"


def strategy_for_request(
    request: "OptimizationRequest",
    teams: Sequence[str] = (),
    *,
    constraints: RosterConstraints,
    catalog: Optional[PresetCatalog] = None,
) -> GenerationStrategy:
    """Pick the generation strategy for a whole batch."""

    mode = resolve_mode(request)
    core = request.core_player_ids
    excluded = request.exclude_player_ids
    if mode == "core-hedge":
        return CoreHedgeStrategy(
            constraints,
            core_ids=core,
            hedge_ids=request.hedge_player_ids,
            hedge_percentage=request.hedge_percentage,
            differential_ids=request.differential_player_ids,
            differential_lineups=request.differential_lineups,
            exclude_ids=excluded,
        )
    if mode == "stat-filter":
        return StatFilterStrategy(constraints, ranges=request.filters, locked_ids=core, exclude_ids=excluded)
    if mode == "preset":
        if not request.preset_id:
            raise ValueError("Preset mode needs a preset_id")
        preset = (catalog or PresetCatalog()).get(request.preset_id)
        return PresetStrategy(constraints, preset=preset, teams=teams, locked_ids=core, exclude_ids=excluded)
    if mode == "role-split":
        if not (request.role_shape or request.team_split):
            raise ValueError("Role-split mode needs a role_shape or team_split")
        return RoleSplitStrategy(
            constraints,
            shape=RoleShape.parse(request.role_shape) if request.role_shape else None,
            team_split=request.team_split,
            teams=teams,
            locked_ids=core,
            exclude_ids=excluded,
        )
    return PlainStrategy(constraints, locked_ids=core, exclude_ids=excluded)
