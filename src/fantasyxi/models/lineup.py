"""Finished lineup records returned to callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple

from .player import Role


@dataclass(frozen=True)
class LineupPlayer:
    player_id: str
    name: str
    team: str
    role: Role
    credits: float
    predicted_points: float
    captaincy: float = 0.0
    ownership: float = 0.0


@dataclass(frozen=True)
class Lineup:
    lineup_id: str
    players: Tuple[LineupPlayer, ...]
    captain_id: str
    vice_captain_id: str
    total_credits: float
    role_counts: Mapping[str, int]
    expected_points: float
    risk_score: float
    confidence_score: float
    diversity_score: float = 0.0
    fitness: float = 0.0
    strategy: str = "plain"
    leadership_strategy: str = ""
    rationale: str = ""
    is_fallback: bool = False
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(player.player_id for player in self.players)

    @property
    def signature(self) -> Tuple[str, ...]:
        return tuple(sorted(self.player_ids))

    @property
    def captain(self) -> LineupPlayer:
        return self._member(self.captain_id)

    @property
    def vice_captain(self) -> LineupPlayer:
        return self._member(self.vice_captain_id)

    def _member(self, player_id: str) -> LineupPlayer:
        for player in self.players:
            if player.player_id == player_id:
                return player
        raise KeyError(player_id)
