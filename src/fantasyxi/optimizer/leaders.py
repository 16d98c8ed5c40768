"""Captain and vice-captain selection with deterministic rotation."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from fantasyxi.models.player import Role
from fantasyxi.models.scored import ScoredPlayer

LEADERSHIP_STRATEGIES: tuple[str, ...] = (
    "top-two",
    "second-third",
    "third-first",
    "differential",
    "seeded-random",
    "ownership-fade",
)

_BOWLER_PENALTY = 0.85
_RANDOM_POOL = 8


@dataclass(frozen=True)
class LeadershipPick:
    captain_id: str
    vice_captain_id: str
    strategy: str


class LeadershipSelector:
    """Ranks lineup members for captaincy and rotates the pick per variation seed.

    A batch that passes ``variation_seed = 0, 1, 2, ...`` cycles through six
    ranking strategies so the same lineup core still yields different
    captain/vice-captain pairs.
    """

    def __init__(self, captaincy_weight: float = 0.5):
        if not 0.0 <= captaincy_weight <= 1.0:
            raise ValueError("captaincy_weight must be between 0 and 1")
        self.captaincy_weight = captaincy_weight

    def leadership_score(self, player: ScoredPlayer, *, penalize_bowlers: bool = False) -> float:
        score = self.captaincy_weight * player.captaincy + (1.0 - self.captaincy_weight) * (player.predicted_points / 100.0)
        if penalize_bowlers and player.role is Role.BOWLER:
            score *= _BOWLER_PENALTY
        return score

    def rank(self, members: Sequence[ScoredPlayer]) -> List[ScoredPlayer]:
        non_bowlers = [player for player in members if player.role is not Role.BOWLER]
        if len(non_bowlers) >= 2:
            candidates, penalize = non_bowlers, False
        else:
            candidates, penalize = list(members), True
        return sorted(
            candidates,
            key=lambda player: (-self.leadership_score(player, penalize_bowlers=penalize), player.player_id),
        )

    def select(
        self,
        lineup_players: Iterable,
        scored: Sequence[ScoredPlayer],
        variation_seed: int,
        *,
        captain_id: Optional[str] = None,
        vice_captain_id: Optional[str] = None,
    ) -> LeadershipPick:
        lookup: Mapping[str, ScoredPlayer] = {player.player_id: player for player in scored}
        members = [lookup.get(player.player_id, player) for player in lineup_players]
        member_ids = {player.player_id for player in members}
        if len(member_ids) < 2:
            raise ValueError("A lineup needs at least two players to name a captain and vice-captain")

        ranked = self.rank(members)

        if captain_id in member_ids:
            if vice_captain_id in member_ids and vice_captain_id != captain_id:
                return LeadershipPick(captain_id, vice_captain_id, "pinned")
            vice = next(player for player in self._by_score(members) if player.player_id != captain_id)
            return LeadershipPick(captain_id, vice.player_id, "pinned")

        strategy = LEADERSHIP_STRATEGIES[variation_seed % len(LEADERSHIP_STRATEGIES)]
        count = len(ranked)

        if strategy == "top-two":
            captain, vice = ranked[0], ranked[1 % count]
        elif strategy == "second-third":
            captain, vice = ranked[1 % count], ranked[2 % count]
        elif strategy == "third-first":
            captain, vice = ranked[2 % count], ranked[0]
        elif strategy == "differential":
            captain = max(ranked, key=lambda player: (player.upset_potential, -ranked.index(player)))
            vice = ranked[0]
        elif strategy == "seeded-random":
            rng = random.Random(variation_seed)
            top = ranked[:_RANDOM_POOL]
            captain = rng.choice(top)
            vice = rng.choice(top)
        else:
            top_half = ranked[: max(2, math.ceil(count / 2))]
            captain = min(top_half, key=lambda player: (player.ownership, top_half.index(player)))
            vice = ranked[0]

        if vice.player_id == captain.player_id:
            vice = self._next_distinct(ranked, captain)
        return LeadershipPick(captain.player_id, vice.player_id, strategy)

    def _by_score(self, members: Sequence[ScoredPlayer]) -> List[ScoredPlayer]:
        return sorted(members, key=lambda player: (-self.leadership_score(player), player.player_id))

    @staticmethod
    def _next_distinct(ranked: Sequence[ScoredPlayer], captain: ScoredPlayer) -> ScoredPlayer:
        start = next((i for i, player in enumerate(ranked) if player.player_id == captain.player_id), -1)
        for offset in range(1, len(ranked) + 1):
            candidate = ranked[(start + offset) % len(ranked)]
            if candidate.player_id != captain.player_id:
                return candidate
        raise ValueError("No distinct vice-captain available")
