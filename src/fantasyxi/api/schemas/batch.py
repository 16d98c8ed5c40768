from __future__ import annotations

from pydantic import BaseModel

from .lineup import LineupResponse, PlayerUsageResponse


class BatchStatsResponse(BaseModel):
    lineup_count: int
    unique_captains: int
    unique_vice_captains: int
    unique_pairs: int
    unique_lineups: int
    players_used: int
    pool_size: int
    pool_utilization: float
    mean_overlap: float
    max_overlap: int
    fallback_count: int


class RunFailureResponse(BaseModel):
    index: int
    reason: str
    recovery: str


class LineupBatchResponse(BaseModel):
    lineups: list[LineupResponse]
    stats: BatchStatsResponse
    player_usage: list[PlayerUsageResponse]
    failures: list[RunFailureResponse]
    message: str | None = None
