"""Deterministic derivation of advanced player attributes.

Every helper here is a bounded formula over the raw player fields and the
match context. Callers may supply any attribute directly on the ``Player``;
only missing ones are derived. There is no randomness, so scoring the same
player in the same context always yields the same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from fantasyxi.models.player import MatchContext, Player, Role


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


# Venue name fragment -> role that historically outperforms there.
VENUE_ROLE_BONUSES: Mapping[str, tuple[Role, float]] = {
    "wankhede": (Role.BATTER, 0.2),
    "chinnaswamy": (Role.BATTER, 0.2),
    "lord": (Role.BOWLER, 0.2),
    "chepauk": (Role.BOWLER, 0.15),
    "adelaide": (Role.ALL_ROUNDER, 0.15),
}

# (country, weather) pairs with home-condition familiarity.
HOME_WEATHER: Mapping[tuple[str, str], float] = {
    ("india", "hot"): 0.8,
    ("england", "overcast"): 0.8,
    ("australia", "clear"): 0.8,
    ("new zealand", "cold"): 0.75,
    ("south africa", "clear"): 0.7,
}

DEFAULT_TEAM_STRENGTHS: Mapping[str, float] = {
    "india": 0.9,
    "australia": 0.85,
    "england": 0.8,
    "south africa": 0.75,
    "new zealand": 0.7,
    "pakistan": 0.7,
    "west indies": 0.6,
    "sri lanka": 0.55,
}

_DEFAULT_OPPONENT_STRENGTH = 0.5
_DEFAULT_HEAD_TO_HEAD = 0.5


@dataclass(frozen=True)
class FeatureVector:
    """Feature set shared by every predictor in the ensemble."""

    role: Role
    base_points: float
    credits: float
    selection_pct: float
    dream_team_pct: float
    recent_form: float
    consistency: float
    versatility: float
    injury_risk: float
    venue_fit: float
    pitch_fit: float
    weather_fit: float
    opposition_strength: float
    head_to_head: float
    captaincy: float
    ownership: float
    price_efficiency: float
    upset_potential: float

    @property
    def confidence_weight(self) -> float:
        return self.consistency * 0.3 + self.recent_form * 0.7


def recent_form(player: Player) -> float:
    base_form = (player.points / 100.0) * 0.6
    dream_team_bonus = (player.dream_team_pct / 100.0) * 0.4
    return clamp(base_form + dream_team_bonus)


def consistency(player: Player) -> float:
    # Moderately selected players with steady points tend to be consistent.
    consistency_base = max(0.0, 1.0 - abs(player.selection_pct - 50.0) / 50.0)
    points_bonus = min(1.0, player.points / 60.0) * 0.3
    return clamp(consistency_base * 0.7 + points_bonus)


def versatility(player: Player) -> float:
    if player.role is Role.ALL_ROUNDER:
        return 0.9
    credit_bonus = min(1.0, (player.credits - 7.0) / 4.0)
    return clamp(0.5 + credit_bonus * 0.4, 0.3, 1.0)


def injury_risk(player: Player) -> float:
    """Fitness rating on a 1-10 scale where 10 means lowest injury risk."""

    rating = 7.0
    rating += 1.0 if player.eligible else -2.0
    if player.points <= 0 and player.selection_pct <= 0:
        rating -= 1.0
    return clamp(rating, 1.0, 10.0)


def venue_fit(player: Player, context: MatchContext) -> float:
    base = (player.points / 100.0) * 0.8
    venue = context.venue.lower()
    bonus = 0.0
    for fragment, (role, value) in VENUE_ROLE_BONUSES.items():
        if fragment in venue and player.role is role:
            bonus = max(bonus, value)
    return clamp(base + bonus)


def pitch_fit(player: Player, context: MatchContext) -> float:
    if context.pitch_type == "batting" and player.role in (Role.BATTER, Role.ALL_ROUNDER):
        return 0.8
    if context.pitch_type == "bowling" and player.role is Role.BOWLER:
        return 0.8
    if context.pitch_type == "balanced":
        return 0.6
    return 0.5


def weather_fit(player: Player, context: MatchContext) -> float:
    country = (player.country or "").strip().lower()
    return HOME_WEATHER.get((country, context.weather), 0.5)


def opponent_strength(player: Player, context: MatchContext) -> float:
    opponent = context.opponent_of(player.team)
    if opponent in context.team_strengths:
        return clamp(context.team_strengths[opponent])
    return DEFAULT_TEAM_STRENGTHS.get(opponent.strip().lower(), _DEFAULT_OPPONENT_STRENGTH)


def opposition_strength(player: Player, context: MatchContext) -> float:
    """How favourable the matchup is; weaker opponents score higher."""

    base = (player.points / 100.0) * 0.8
    return clamp(base + (1.0 - opponent_strength(player, context)) * 0.3)


def head_to_head(player: Player, context: MatchContext) -> float:
    average = context.head_to_head.get(player.player_id)
    if average is None:
        return _DEFAULT_HEAD_TO_HEAD
    return clamp(average / 100.0)


def captaincy(player: Player) -> float:
    role_bonus = {
        Role.BATTER: 0.3,
        Role.ALL_ROUNDER: 0.3,
        Role.KEEPER: 0.2,
        Role.BOWLER: 0.1,
    }[player.role]
    credit_bonus = min(1.0, player.credits / 12.0) * 0.4
    points_bonus = min(1.0, player.points / 80.0) * 0.3
    return clamp(role_bonus + credit_bonus + points_bonus)


def ownership(player: Player) -> float:
    return clamp((player.selection_pct * 0.6 + player.dream_team_pct * 0.4) / 100.0)


def price_efficiency(player: Player) -> float:
    # Ten points per credit is treated as the ceiling.
    credits = player.credits if player.credits > 0 else 8.0
    return clamp((player.points / credits) / 10.0)


def upset_potential(player: Player) -> float:
    low_ownership = max(0.0, 1.0 - player.selection_pct / 100.0)
    decent_potential = min(1.0, player.points / 40.0)
    return clamp(low_ownership * 0.7 + decent_potential * 0.3)


def performance_volatility(player: Player) -> float:
    gap = abs(player.dream_team_pct - player.selection_pct)
    return clamp(gap / 50.0)


def _given(value: float | None, fallback) -> float:
    return float(value) if value is not None else float(fallback())


def build_features(player: Player, context: MatchContext) -> FeatureVector:
    """Collect supplied attributes and derive the missing ones."""

    return FeatureVector(
        role=player.role,
        base_points=player.points,
        credits=player.credits,
        selection_pct=player.selection_pct,
        dream_team_pct=player.dream_team_pct,
        recent_form=_given(player.recent_form, lambda: recent_form(player)),
        consistency=_given(player.consistency, lambda: consistency(player)),
        versatility=_given(player.versatility, lambda: versatility(player)),
        injury_risk=_given(player.injury_risk, lambda: injury_risk(player)),
        venue_fit=_given(player.venue_fit, lambda: venue_fit(player, context)),
        pitch_fit=_given(player.pitch_fit, lambda: pitch_fit(player, context)),
        weather_fit=_given(player.weather_fit, lambda: weather_fit(player, context)),
        opposition_strength=_given(player.opposition_strength, lambda: opposition_strength(player, context)),
        head_to_head=_given(player.head_to_head, lambda: head_to_head(player, context)),
        captaincy=_given(player.captaincy, lambda: captaincy(player)),
        ownership=_given(player.ownership, lambda: ownership(player)),
        price_efficiency=_given(player.price_efficiency, lambda: price_efficiency(player)),
        upset_potential=_given(player.upset_potential, lambda: upset_potential(player)),
    )
