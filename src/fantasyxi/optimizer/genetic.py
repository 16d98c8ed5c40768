"""Genetic search over legal 11-player lineups."""

from __future__ import annotations

import logging
import math
import random
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from fantasyxi.config.roster import RosterConstraints
from fantasyxi.config.settings import OptimizerSettings
from fantasyxi.exceptions import InfeasiblePool, ValidatorRejection
from fantasyxi.models.player import ROLE_ORDER, Role
from fantasyxi.models.scored import ScoredPlayer
from fantasyxi.validation.validator import validate

from .fitness import fitness

logger = logging.getLogger("uvicorn.error")

Individual = Tuple[int, ...]


@dataclass(frozen=True)
class OptimizedLineup:
    players: Tuple[ScoredPlayer, ...]
    fitness: float
    risk_filtered: bool
    generations: int = 0
    rejected_offspring: int = 0
    is_fallback: bool = False

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(player.player_id for player in self.players)


def eligible_only(pool: Iterable[ScoredPlayer]) -> List[ScoredPlayer]:
    return [player for player in pool if player.player.eligible]


def role_shortfall(pool: Sequence[ScoredPlayer], constraints: RosterConstraints) -> List[Role]:
    counts = Counter(player.role for player in pool)
    return [role for role in ROLE_ORDER if counts.get(role, 0) < constraints.bounds(role).min]


def _franchise_capacity(pool: Sequence[ScoredPlayer], constraints: RosterConstraints) -> int:
    teams = Counter(player.team or "Unknown" for player in pool)
    return sum(min(count, constraints.team_cap(team)) for team, count in teams.items())


def _minimum_cost(pool: Sequence[ScoredPlayer], constraints: RosterConstraints) -> float:
    """Lower bound on the credits any legal lineup from this pool must spend."""

    chosen: set[str] = set()
    total = 0.0
    for role in ROLE_ORDER:
        cheapest = sorted((p for p in pool if p.role is role), key=lambda p: p.credits)
        for player in cheapest[: constraints.bounds(role).min]:
            chosen.add(player.player_id)
            total += player.credits
    needed = constraints.squad_size - len(chosen)
    rest = sorted(p.credits for p in pool if p.player_id not in chosen)
    return total + sum(rest[:max(0, needed)])


def check_feasibility(
    pool: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    locked: Sequence[ScoredPlayer] = (),
) -> None:
    """Raise :class:`InfeasiblePool` when no legal lineup can exist."""

    short = role_shortfall(pool, constraints)
    if short:
        raise InfeasiblePool(roles=[role.label for role in short])
    if len(pool) < constraints.squad_size:
        raise InfeasiblePool(
            reason=f"Only {len(pool)} eligible players, need {constraints.squad_size}",
        )
    if _franchise_capacity(pool, constraints) < constraints.squad_size:
        raise InfeasiblePool(
            reason=f"Franchise cap of {constraints.max_per_team} leaves too few usable players",
        )
    if _minimum_cost(pool, constraints) > constraints.salary_cap + 1e-9:
        raise InfeasiblePool(
            reason=f"Cheapest possible lineup exceeds the {constraints.salary_cap:g} credit cap",
        )
    if locked:
        locked_roles = Counter(player.role for player in locked)
        over = [role for role in ROLE_ORDER if locked_roles.get(role, 0) > constraints.bounds(role).max]
        if over:
            raise InfeasiblePool(
                roles=[role.label for role in over],
                reason="Locked players exceed the maximum for role(s): " + ", ".join(role.label for role in over),
            )
        if len(locked) > constraints.squad_size:
            raise InfeasiblePool(reason=f"{len(locked)} locked players exceed the squad size")
        if sum(player.credits for player in locked) > constraints.salary_cap + 1e-9:
            raise InfeasiblePool(reason="Locked players exceed the credit cap")
        locked_teams = Counter(player.team for player in locked)
        if any(count > constraints.team_cap(team) for team, count in locked_teams.items()):
            raise InfeasiblePool(reason="Locked players exceed the per-franchise cap")


class _Selection:
    """Incrementally built lineup that only accepts picks keeping it completable."""

    def __init__(self, constraints: RosterConstraints, cheapest: Mapping[Role, float], cheapest_any: float):
        self.constraints = constraints
        self.cheapest = cheapest
        self.cheapest_any = cheapest_any
        self.members: List[int] = []
        self.ids: set[str] = set()
        self.roles: Counter = Counter()
        self.teams: Counter = Counter()
        self.credits = 0.0

    def add(self, index: int, player: ScoredPlayer) -> None:
        self.members.append(index)
        self.ids.add(player.player_id)
        self.roles[player.role] += 1
        self.teams[player.team] += 1
        self.credits += player.credits

    @property
    def full(self) -> bool:
        return len(self.members) >= self.constraints.squad_size

    def outstanding(self, role: Role) -> int:
        return max(0, self.constraints.bounds(role).min - self.roles[role])

    def _reserve_after(self, player: ScoredPlayer) -> float:
        slots_left = self.constraints.squad_size - len(self.members) - 1
        needed = 0
        reserve = 0.0
        for role in ROLE_ORDER:
            missing = self.outstanding(role) - (1 if player.role is role and self.outstanding(role) else 0)
            if missing > 0:
                needed += missing
                reserve += missing * self.cheapest.get(role, math.inf)
        if needed > slots_left:
            return math.inf
        return reserve + (slots_left - needed) * self.cheapest_any

    def can_add(self, player: ScoredPlayer) -> bool:
        if self.full or player.player_id in self.ids:
            return False
        if self.roles[player.role] >= self.constraints.bounds(player.role).max:
            return False
        if self.teams[player.team] >= self.constraints.team_cap(player.team):
            return False
        return self.credits + player.credits + self._reserve_after(player) <= self.constraints.salary_cap + 1e-9


def _cheapest_by_role(pool: Sequence[ScoredPlayer]) -> Tuple[Dict[Role, float], float]:
    cheapest: Dict[Role, float] = {}
    for player in pool:
        current = cheapest.get(player.role)
        if current is None or player.credits < current:
            cheapest[player.role] = player.credits
    cheapest_any = min((player.credits for player in pool), default=0.0)
    return cheapest, cheapest_any


def _assemble(
    pool: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    locked: Sequence[int],
    choose: Callable[[List[int]], int],
) -> Optional[List[int]]:
    """Fill locked players, then role minimums, then free slots using ``choose``."""

    cheapest, cheapest_any = _cheapest_by_role(pool)
    selection = _Selection(constraints, cheapest, cheapest_any)
    for index in locked:
        selection.add(index, pool[index])

    for role in ROLE_ORDER:
        while selection.outstanding(role) > 0:
            options = [i for i, p in enumerate(pool) if p.role is role and selection.can_add(p)]
            if not options:
                return None
            pick = choose(options)
            selection.add(pick, pool[pick])

    while not selection.full:
        options = [i for i, p in enumerate(pool) if selection.can_add(p)]
        if not options:
            return None
        pick = choose(options)
        selection.add(pick, pool[pick])

    return selection.members


def build_fallback(
    pool: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    locked_ids: Iterable[str] = (),
) -> List[ScoredPlayer]:
    """Deterministic lineup built straight from role quotas, no search.

    Picks the highest predicted players first and, if that cannot be
    completed, retries taking the cheapest players.
    """

    eligible = eligible_only(pool)
    index_by_id = {player.player_id: i for i, player in enumerate(eligible)}
    locked = [index_by_id[pid] for pid in dict.fromkeys(locked_ids) if pid in index_by_id]
    locked_players = [eligible[i] for i in locked]
    check_feasibility(eligible, constraints, locked_players)

    orderings: Tuple[Callable[[List[int]], int], ...] = (
        lambda options: max(options, key=lambda i: (eligible[i].predicted_points, -eligible[i].credits, -i)),
        lambda options: min(options, key=lambda i: (eligible[i].credits, -eligible[i].predicted_points, i)),
    )
    for choose in orderings:
        members = _assemble(eligible, constraints, locked, choose)
        if members is None:
            continue
        players = [eligible[i] for i in members]
        if validate(players, constraints).ok:
            return _ordered(players)
    raise InfeasiblePool(reason="Unable to assemble a minimal lineup from role quotas")


def _ordered(players: Iterable[ScoredPlayer]) -> List[ScoredPlayer]:
    rank = {role: position for position, role in enumerate(ROLE_ORDER)}
    return sorted(players, key=lambda player: (rank[player.role], -player.predicted_points, player.player_id))


class GeneticOptimizer:
    """Population-based search for the fittest legal lineup.

    Holds only immutable configuration; every call to :meth:`optimize` owns its
    own population so one instance can serve concurrent runs.
    """

    def __init__(self, constraints: RosterConstraints, settings: Optional[OptimizerSettings] = None):
        self.constraints = constraints
        self.settings = settings or OptimizerSettings()

    def risk_filter(
        self,
        pool: Sequence[ScoredPlayer],
        risk_profile: str,
        locked_ids: Iterable[str] = (),
    ) -> Tuple[List[ScoredPlayer], bool]:
        """Drop players outside the profile's volatility/consistency band.

        Locked players always survive. Returns the unfiltered pool when the
        filtered one could not fill every role minimum.
        """

        threshold = self.settings.threshold(risk_profile)
        keep = set(locked_ids)
        filtered = [
            player
            for player in pool
            if player.player_id in keep
            or (player.volatility <= threshold.max_volatility and player.consistency >= threshold.min_consistency)
        ]
        if len(filtered) == len(pool):
            return list(pool), True
        if role_shortfall(filtered, self.constraints) or len(filtered) < self.constraints.squad_size:
            logger.warning(
                "Risk filter (%s) left %s/%s players; skipping filter for this run",
                risk_profile,
                len(filtered),
                len(pool),
            )
            return list(pool), False
        return filtered, True

    def optimize(
        self,
        pool: Sequence[ScoredPlayer],
        risk_profile: str,
        rng: random.Random,
        *,
        locked_ids: Iterable[str] = (),
        bias: Optional[Mapping[str, float]] = None,
        budget_target: Optional[float] = None,
    ) -> OptimizedLineup:
        settings = self.settings
        eligible = eligible_only(pool)
        known = {player.player_id for player in eligible}
        locked_list = [pid for pid in dict.fromkeys(locked_ids) if pid]
        missing = [pid for pid in locked_list if pid not in known]
        if missing:
            logger.warning("Ignoring locked players not in the eligible pool: %s", ", ".join(missing))
        locked_list = [pid for pid in locked_list if pid in known]
        locked_set = set(locked_list)
        check_feasibility(eligible, self.constraints, [p for p in eligible if p.player_id in locked_set])

        start = time.perf_counter()
        candidates, filtered = self.risk_filter(eligible, risk_profile, locked_list)
        population = self._initial_population(candidates, locked_list, rng)
        if not population and len(candidates) < len(eligible):
            logger.warning("No legal lineup from risk-filtered pool; retrying with the full pool")
            candidates, filtered = eligible, False
            population = self._initial_population(candidates, locked_list, rng)
        if not population:
            raise InfeasiblePool(reason="Could not assemble any legal lineup from the player pool")

        locked_indices = frozenset(i for i, p in enumerate(candidates) if p.player_id in locked_set)
        cache: Dict[Individual, float] = {}

        def score(individual: Individual) -> float:
            key = tuple(sorted(individual))
            if key not in cache:
                cache[key] = fitness(
                    [candidates[i] for i in individual],
                    self.constraints,
                    risk_profile,
                    settings.fitness_weights,
                    points_scale=settings.points_scale,
                    bias=bias,
                    budget_target=budget_target,
                )
            return cache[key]

        rejected = 0
        for generation in range(settings.generations):
            ranked = sorted(population, key=score, reverse=True)
            population, gen_rejected = self._next_generation(ranked, candidates, locked_indices, score, rng)
            rejected += gen_rejected
            logger.debug(
                "Generation %s/%s best fitness %.4f (rejected %s offspring)",
                generation + 1,
                settings.generations,
                score(ranked[0]),
                gen_rejected,
            )

        best = max(population, key=score)
        players = [candidates[i] for i in best]
        self._admit(players)
        logger.info(
            "Optimized %s lineup in %.2fs - fitness %.4f, %s generations, population %s, pool %s%s",
            risk_profile,
            time.perf_counter() - start,
            score(best),
            settings.generations,
            len(population),
            len(candidates),
            "" if filtered else " (risk filter skipped)",
        )
        return OptimizedLineup(
            players=tuple(_ordered(players)),
            fitness=score(best),
            risk_filtered=filtered,
            generations=settings.generations,
            rejected_offspring=rejected,
        )

    def _admit(self, players: Sequence[ScoredPlayer]) -> None:
        result = validate(players, self.constraints)
        if not result.ok:
            raise ValidatorRejection(result.violations)

    def _random_candidate(
        self, pool: Sequence[ScoredPlayer], locked: Sequence[int], rng: random.Random
    ) -> Optional[Individual]:
        members = _assemble(pool, self.constraints, locked, rng.choice)
        if members is None:
            return None
        try:
            self._admit([pool[i] for i in members])
        except ValidatorRejection:
            return None
        return tuple(members)

    def _initial_population(
        self, pool: Sequence[ScoredPlayer], locked_ids: Sequence[str], rng: random.Random
    ) -> List[Individual]:
        index_by_id = {player.player_id: i for i, player in enumerate(pool)}
        locked = [index_by_id[pid] for pid in locked_ids if pid in index_by_id]
        target = self.settings.population_size
        budget = target * self.settings.init_attempts_factor
        population: List[Individual] = []
        for _ in range(budget):
            if len(population) >= target:
                break
            candidate = self._random_candidate(pool, locked, rng)
            if candidate is not None:
                population.append(candidate)
        if population and len(population) < target:
            logger.debug("Seeded %s/%s individuals; padding with copies", len(population), target)
            base = list(population)
            while len(population) < target:
                population.append(base[len(population) % len(base)])
        return population

    def _tournament(self, ranked: Sequence[Individual], score, rng: random.Random) -> Individual:
        size = min(self.settings.tournament_size, len(ranked))
        contenders = rng.sample(list(ranked), size)
        return max(contenders, key=score)

    def _crossover(
        self,
        parent_a: Individual,
        parent_b: Individual,
        pool: Sequence[ScoredPlayer],
        locked: frozenset,
        rng: random.Random,
    ) -> List[int]:
        squad = self.constraints.squad_size
        half = squad // 2
        child: List[int] = sorted(locked)
        for index in list(parent_a[:half]) + list(parent_b[half:]):
            if index not in child:
                child.append(index)
        if len(child) < squad:
            unused = [i for i in range(len(pool)) if i not in child]
            rng.shuffle(unused)
            child.extend(unused[: squad - len(child)])
        return child[:squad]

    def _mutate(self, child: List[int], pool: Sequence[ScoredPlayer], locked: frozenset, rng: random.Random) -> List[int]:
        rate = self.settings.mutation_rate
        for slot, index in enumerate(child):
            if index in locked or rng.random() >= rate:
                continue
            unused = [i for i in range(len(pool)) if i not in child]
            if unused:
                child[slot] = rng.choice(unused)
        return child

    def _next_generation(
        self,
        ranked: Sequence[Individual],
        pool: Sequence[ScoredPlayer],
        locked: frozenset,
        score,
        rng: random.Random,
    ) -> Tuple[List[Individual], int]:
        settings = self.settings
        target = len(ranked)
        elite_count = max(1, int(target * settings.elite_fraction))
        next_population: List[Individual] = list(ranked[:elite_count])

        rejected = 0
        attempts = 0
        max_attempts = target * settings.offspring_attempts_factor
        while len(next_population) < target and attempts < max_attempts:
            attempts += 1
            parent_a = self._tournament(ranked, score, rng)
            parent_b = self._tournament(ranked, score, rng)
            child = self._crossover(parent_a, parent_b, pool, locked, rng)
            child = self._mutate(child, pool, locked, rng)
            try:
                self._admit([pool[i] for i in child])
            except ValidatorRejection:
                rejected += 1
                continue
            next_population.append(tuple(child))

        if len(next_population) < target:
            # Offspring budget exhausted: carry over the next-best survivors.
            survivors = list(ranked[elite_count:]) or list(ranked)
            position = 0
            while len(next_population) < target:
                next_population.append(survivors[position % len(survivors)])
                position += 1
        return next_population, rejected
