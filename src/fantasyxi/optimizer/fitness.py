"""Team-level metrics and the composite fitness used by the genetic search."""

from __future__ import annotations

import math
from collections import Counter
from typing import Mapping, Optional, Sequence

from fantasyxi.config.roster import RosterConstraints
from fantasyxi.config.settings import FitnessWeights
from fantasyxi.models.player import ROLE_ORDER
from fantasyxi.models.scored import ScoredPlayer
from fantasyxi.validation.validator import role_histogram, team_histogram


def expected_points(players: Sequence[ScoredPlayer], bias: Optional[Mapping[str, float]] = None) -> float:
    if not bias:
        return float(sum(player.predicted_points for player in players))
    return float(sum(player.predicted_points * max(0.0, bias.get(player.player_id, 1.0)) for player in players))


def team_risk(players: Sequence[ScoredPlayer]) -> float:
    if not players:
        return 0.0
    return sum(player.volatility for player in players) / len(players)


def team_confidence(players: Sequence[ScoredPlayer]) -> float:
    if not players:
        return 0.0
    return sum(player.confidence for player in players) / len(players)


def _entropy(counts: Sequence[int]) -> float:
    total = sum(counts)
    if total <= 0:
        return 0.0
    entropy = 0.0
    for count in counts:
        if count > 0:
            share = count / total
            entropy -= share * math.log(share)
    return entropy


def diversity_score(players: Sequence[ScoredPlayer]) -> float:
    """Mean of normalized role entropy, franchise entropy and credit spread."""

    if not players:
        return 0.0
    role_entropy = _entropy(list(role_histogram(players).values())) / math.log(len(ROLE_ORDER))
    team_entropy = min(1.0, _entropy(list(team_histogram(players).values())) / math.log(2))

    credits = [player.credits for player in players]
    mean = sum(credits) / len(credits)
    variance = sum((value - mean) ** 2 for value in credits) / len(credits)
    credit_spread = min(1.0, variance / 10.0)

    return (role_entropy + team_entropy + credit_spread) / 3.0


def budget_utilization(
    players: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    target: Optional[float] = None,
) -> float:
    """Share of the credit cap spent, or closeness to ``target`` share when given."""

    if constraints.salary_cap <= 0:
        return 0.0
    used = min(1.0, sum(player.credits for player in players) / constraints.salary_cap)
    if not target:
        return used
    return max(0.0, 1.0 - abs(used - target) / target)


def risk_alignment(risk: float, risk_profile: str) -> float:
    if risk_profile == "conservative":
        return 1.0 - risk
    if risk_profile == "aggressive":
        return risk
    return 0.5 - abs(risk - 0.5)


def fitness(
    players: Sequence[ScoredPlayer],
    constraints: RosterConstraints,
    risk_profile: str,
    weights: FitnessWeights,
    *,
    points_scale: float = 500.0,
    bias: Optional[Mapping[str, float]] = None,
    budget_target: Optional[float] = None,
) -> float:
    points = expected_points(players, bias) / points_scale if points_scale > 0 else 0.0
    return (
        points * weights.points
        + risk_alignment(team_risk(players), risk_profile) * weights.risk
        + diversity_score(players) * weights.diversity
        + team_confidence(players) * weights.confidence
        + budget_utilization(players, constraints, budget_target) * weights.budget
    )


def describe_lineup(players: Sequence[ScoredPlayer], risk_profile: str, *, strategy: str = "plain") -> str:
    """Short human-readable rationale for a finished lineup."""

    roles = role_histogram(players)
    teams = Counter(player.team for player in players)
    shape = "-".join(str(roles[role]) for role in ROLE_ORDER)
    top = sorted(players, key=lambda player: player.predicted_points, reverse=True)[:3]
    stars = ", ".join(player.name for player in top)
    split = " / ".join(f"{team} {count}" for team, count in teams.most_common())
    return (
        f"{risk_profile.capitalize()} {strategy} lineup with shape {shape} ({split}); "
        f"expected {expected_points(players):.1f} pts, risk {team_risk(players):.2f}, "
        f"confidence {team_confidence(players):.2f}; key picks: {stars}"
    )
