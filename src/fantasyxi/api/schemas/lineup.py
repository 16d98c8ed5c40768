from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from fantasyxi.models.player import MatchContext, Player
from fantasyxi.models.scored import ScoredPlayer
from fantasyxi.optimizer.service import OptimizationRequest


class ScorePlayersRequest(BaseModel):
    context: MatchContext = Field(default_factory=MatchContext)
    players: List[Player]


class ScorePlayersResponse(BaseModel):
    players: List[ScoredPlayer]


class LineupRequest(BaseModel):
    context: MatchContext = Field(default_factory=MatchContext)
    players: List[Player] = Field(..., min_length=1)
    rules: str = Field(default="classic")
    options: OptimizationRequest = Field(default_factory=OptimizationRequest)


class LineupPlayerResponse(BaseModel):
    player_id: str
    name: str
    team: str
    role: str
    credits: float
    predicted_points: float
    is_captain: bool = False
    is_vice_captain: bool = False


class LineupResponse(BaseModel):
    lineup_id: str
    captain_id: str
    vice_captain_id: str
    total_credits: float
    role_counts: Dict[str, int]
    expected_points: float
    risk_score: float
    confidence_score: float
    diversity_score: float
    strategy: str
    leadership_strategy: str
    rationale: str
    is_fallback: bool
    warnings: List[str] = Field(default_factory=list)
    players: List[LineupPlayerResponse]


class PlayerUsageResponse(BaseModel):
    player_id: str
    name: str
    count: int
    exposure: float
    captain_count: int
