"""Named composition templates for preset-driven lineup generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Literal, Mapping, Optional, Sequence, Tuple

from fantasyxi.config.roster import RoleShape
from fantasyxi.models.player import Role
from fantasyxi.models.scored import ScoredPlayer

RiskLevel = Literal["low", "medium", "high"]

_RISK_PROFILE_BY_LEVEL = {"low": "conservative", "medium": "balanced", "high": "aggressive"}

_ROLE_BONUS = 0.2
_IN_FORM_BONUS = 0.15
_MATCH_WINNER_BONUS = 0.1
_DIFFERENTIAL_BONUS = 0.15
_PRIORITY_TEAM_BONUS = 0.1
_MIN_FACTOR = 0.1


@dataclass(frozen=True)
class PresetTemplate:
    preset_id: str
    name: str
    description: str
    shape: RoleShape
    risk_level: RiskLevel = "medium"
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    min_selection_pct: Optional[float] = None
    max_selection_pct: Optional[float] = None
    prioritized_roles: Tuple[Role, ...] = ()
    prioritize_in_form: bool = False
    prioritize_match_winners: bool = False
    target_differentials: bool = False
    # Relative weight of team1 / team2 players, 0.5 is neutral.
    team_weights: Tuple[float, float] = (0.5, 0.5)
    prioritized_team: Optional[Literal["team1", "team2"]] = None
    min_credits: Optional[float] = None
    max_credits: Optional[float] = None
    # Target share of the credit cap, rewarded by the budget term of the fitness.
    budget_utilization: Optional[float] = None

    @property
    def suggested_risk_profile(self) -> str:
        return _RISK_PROFILE_BY_LEVEL[self.risk_level]

    def in_selection_band(self, player: ScoredPlayer) -> bool:
        pct = player.player.selection_pct
        if self.min_selection_pct is not None and pct < self.min_selection_pct:
            return False
        if self.max_selection_pct is not None and pct > self.max_selection_pct:
            return False
        return True

    def in_credit_band(self, player: ScoredPlayer) -> bool:
        if self.min_credits is not None and player.credits < self.min_credits:
            return False
        if self.max_credits is not None and player.credits > self.max_credits:
            return False
        return True

    def bias_factor(self, player: ScoredPlayer, teams: Sequence[str] = ()) -> float:
        """Multiplier applied to a player's predicted points during search."""

        factor = 1.0
        if player.role in self.prioritized_roles:
            factor += _ROLE_BONUS
        if self.prioritize_in_form and player.recent_form > 0.5:
            factor += _IN_FORM_BONUS
        if self.prioritize_match_winners and player.credits >= 9:
            factor += _MATCH_WINNER_BONUS
        if self.target_differentials and player.player.selection_pct < 20:
            factor += _DIFFERENTIAL_BONUS
        if len(teams) == 2:
            for slot, (team, weight) in enumerate(zip(teams, self.team_weights)):
                if player.team != team:
                    continue
                factor += (weight - 0.5) * 0.6
                if self.prioritized_team == f"team{slot + 1}":
                    factor += _PRIORITY_TEAM_BONUS
        return max(_MIN_FACTOR, factor)

    def bias_map(self, pool: Iterable[ScoredPlayer], teams: Sequence[str] = ()) -> Dict[str, float]:
        return {player.player_id: self.bias_factor(player, teams) for player in pool}


DEFAULT_PRESETS: Tuple[PresetTemplate, ...] = (
    PresetTemplate(
        preset_id="team-a-high-total",
        name="Team A High Total, Team B Collapse",
        description="Stack team 1 batters expecting a big total, back team 2 to collapse",
        shape=RoleShape(1, 5, 2, 3),
        tags=("batting-pitch", "one-sided", "team-stack"),
        min_selection_pct=10,
        max_selection_pct=80,
        prioritized_roles=(Role.BATTER,),
        prioritize_in_form=True,
        team_weights=(0.7, 0.3),
        prioritized_team="team1",
    ),
    PresetTemplate(
        preset_id="team-b-high-total",
        name="Team B High Total, Team A Collapse",
        description="Stack team 2 batters expecting a big total, back team 1 to collapse",
        shape=RoleShape(1, 5, 2, 3),
        tags=("batting-pitch", "one-sided", "team-stack"),
        min_selection_pct=10,
        max_selection_pct=80,
        prioritized_roles=(Role.BATTER,),
        prioritize_in_form=True,
        team_weights=(0.3, 0.7),
        prioritized_team="team2",
    ),
    PresetTemplate(
        preset_id="high-differentials",
        name="High Differentials",
        description="Low-ownership, high-ceiling players for grand leagues",
        shape=RoleShape(1, 4, 3, 3),
        risk_level="high",
        tags=("differential", "contrarian", "high-risk", "grand-league"),
        max_selection_pct=20,
        prioritize_in_form=True,
        prioritize_match_winners=True,
        target_differentials=True,
        min_credits=7,
        budget_utilization=0.95,
    ),
    PresetTemplate(
        preset_id="balanced-roles",
        name="Balanced Roles",
        description="Traditional composition with equal weight on every department",
        shape=RoleShape(1, 4, 2, 4),
        risk_level="low",
        tags=("balanced", "traditional", "safe", "head-to-head"),
        min_selection_pct=20,
        max_selection_pct=70,
        budget_utilization=0.85,
    ),
    PresetTemplate(
        preset_id="safe-picks-small-leagues",
        name="Safe Picks for Small Leagues",
        description="Popular, consistent performers to minimise risk",
        shape=RoleShape(1, 4, 2, 4),
        risk_level="low",
        tags=("safe", "popular", "small-league", "head-to-head"),
        min_selection_pct=40,
        prioritize_in_form=True,
        min_credits=8,
        budget_utilization=0.90,
    ),
    PresetTemplate(
        preset_id="risky-picks-grand-leagues",
        name="Risky Picks for Grand Leagues",
        description="Low-selected players with explosive upside",
        shape=RoleShape(1, 3, 3, 4),
        risk_level="high",
        tags=("risky", "grand-league", "differential", "explosive"),
        max_selection_pct=30,
        prioritize_match_winners=True,
        target_differentials=True,
        budget_utilization=0.95,
    ),
    PresetTemplate(
        preset_id="batting-show-high-scoring",
        name="Batting Show: High Scoring Match",
        description="Load up on batters and all-rounders for a run fest",
        shape=RoleShape(1, 6, 1, 3),
        tags=("batting", "high-scoring", "flat-pitch", "runs"),
        aliases=("top-order-stack",),
        min_selection_pct=15,
        max_selection_pct=75,
        prioritized_roles=(Role.BATTER, Role.ALL_ROUNDER),
    ),
    PresetTemplate(
        preset_id="bowlers-paradise-low-scoring",
        name="Bowlers Paradise: Low Scoring Match",
        description="Stack bowlers and all-rounders for a wicket-heavy game",
        shape=RoleShape(1, 3, 2, 5),
        tags=("bowling", "low-scoring", "green-pitch", "wickets"),
        aliases=("bowling-heavy",),
        min_selection_pct=10,
        max_selection_pct=70,
        prioritized_roles=(Role.BOWLER, Role.ALL_ROUNDER),
    ),
    PresetTemplate(
        preset_id="differential-gems",
        name="Differential Gems",
        description="Ultra-differential picks with massive upside",
        shape=RoleShape(1, 4, 3, 3),
        risk_level="high",
        tags=("ultra-differential", "grand-league", "gems", "explosive"),
        max_selection_pct=10,
        prioritize_match_winners=True,
        target_differentials=True,
        budget_utilization=0.98,
    ),
    PresetTemplate(
        preset_id="all-rounder-heavy",
        name="All-Rounder Heavy",
        description="Four all-rounders for versatility and captaincy options",
        shape=RoleShape(1, 3, 4, 3),
        tags=("all-rounders", "versatile", "captaincy", "flexible"),
        min_selection_pct=15,
        max_selection_pct=65,
        prioritized_roles=(Role.ALL_ROUNDER,),
        prioritize_in_form=True,
    ),
    PresetTemplate(
        preset_id="team-tag-balance",
        name="Team Tag Balance",
        description="Mix of safe choices and high-potential differentials",
        shape=RoleShape(1, 4, 2, 4),
        tags=("balanced", "mixed", "team-tags", "strategic"),
        min_selection_pct=5,
        max_selection_pct=80,
        prioritize_in_form=True,
        prioritize_match_winners=True,
        budget_utilization=0.88,
    ),
)


@dataclass(frozen=True)
class PresetCatalog:
    presets: Tuple[PresetTemplate, ...] = DEFAULT_PRESETS
    _index: Mapping[str, PresetTemplate] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, PresetTemplate] = {}
        for preset in self.presets:
            for key in (preset.preset_id, *preset.aliases):
                index[key.lower()] = preset
        object.__setattr__(self, "_index", index)

    def __iter__(self) -> Iterator[PresetTemplate]:
        return iter(self.presets)

    def __len__(self) -> int:
        return len(self.presets)

    def get(self, preset_id: str) -> PresetTemplate:
        """Fetch a preset by id or alias, raising KeyError if missing."""

        key = preset_id.strip().lower()
        if key not in self._index:
            raise KeyError(f"Unknown preset {preset_id!r}")
        return self._index[key]

    def by_tag(self, tag: str) -> Tuple[PresetTemplate, ...]:
        return tuple(preset for preset in self.presets if tag in preset.tags)

    def by_risk_level(self, risk_level: str) -> Tuple[PresetTemplate, ...]:
        return tuple(preset for preset in self.presets if preset.risk_level == risk_level)
