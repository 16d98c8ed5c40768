"""Shared player pools for the test suite."""

from __future__ import annotations

from fantasyxi.config.settings import OptimizerSettings
from fantasyxi.models import MatchContext, Player, Role, ScoredPlayer
from fantasyxi.scoring import ScoringModel

TEAMS = ("India", "Australia")

CONTEXT = MatchContext(
    match_id="m1",
    venue="Wankhede Stadium, Mumbai",
    pitch_type="batting",
    weather="hot",
    team1="India",
    team2="Australia",
    match_format="T20",
)

# Small enough that a batch of ten runs in well under a second per lineup.
FAST_SETTINGS = OptimizerSettings(population_size=24, generations=8)


def make_player(
    player_id: str,
    role: Role | str,
    team: str = "India",
    *,
    credits: float = 8.0,
    points: float = 40.0,
    selection_pct: float = 50.0,
    dream_team_pct: float = 30.0,
    **extra,
) -> Player:
    return Player(
        player_id=player_id,
        name=f"Player {player_id}",
        team=team,
        role=role,
        credits=credits,
        points=points,
        selection_pct=selection_pct,
        dream_team_pct=dream_team_pct,
        country=team,
        **extra,
    )


def balanced_pool() -> list[Player]:
    """24 players: per team 2 keepers, 4 batters, 2 all-rounders, 4 bowlers.

    Teams alternate within each role so taking the first few of a role mixes
    both sides.
    """

    players: list[Player] = []
    per_team = ((Role.KEEPER, 2), (Role.BATTER, 4), (Role.ALL_ROUNDER, 2), (Role.BOWLER, 4))
    index = 0
    for role, count in per_team:
        for slot in range(count):
            for team in TEAMS:
                players.append(
                    make_player(
                        f"{role.value.lower()}{slot + 1}-{team[:3].lower()}",
                        role,
                        team,
                        credits=7.5 + (index % 6) * 0.5,
                        points=20.0 + (index * 7) % 60,
                        selection_pct=10.0 + (index * 13) % 80,
                        dream_team_pct=5.0 + (index * 11) % 70,
                    )
                )
                index += 1
    return players


def exact_pool() -> list[Player]:
    """Exactly eleven players meeting the classic minimums 1-4-2-4."""

    shape = ((Role.KEEPER, 1), (Role.BATTER, 4), (Role.ALL_ROUNDER, 2), (Role.BOWLER, 4))
    players: list[Player] = []
    for role, count in shape:
        for slot in range(count):
            team = TEAMS[len(players) % 2]
            players.append(make_player(f"x-{role.value.lower()}{slot + 1}", role, team, points=30.0 + len(players)))
    return players


def pick_lineup(players: list[Player], wk: int = 1, bat: int = 4, ar: int = 2, bwl: int = 4) -> list[Player]:
    wanted = {Role.KEEPER: wk, Role.BATTER: bat, Role.ALL_ROUNDER: ar, Role.BOWLER: bwl}
    chosen: list[Player] = []
    for player in players:
        if wanted[player.role] > 0:
            chosen.append(player)
            wanted[player.role] -= 1
    return chosen


def score(players: list[Player], context: MatchContext = CONTEXT) -> list[ScoredPlayer]:
    return ScoringModel().score(players, context)
