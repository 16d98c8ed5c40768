"""Pydantic models for API I/O."""

from .lineup import (
    LineupPlayerResponse,
    LineupRequest,
    LineupResponse,
    PlayerUsageResponse,
    ScorePlayersRequest,
    ScorePlayersResponse,
)
from .batch import BatchStatsResponse, LineupBatchResponse, RunFailureResponse

__all__ = [
    "BatchStatsResponse",
    "LineupBatchResponse",
    "LineupPlayerResponse",
    "LineupRequest",
    "LineupResponse",
    "PlayerUsageResponse",
    "RunFailureResponse",
    "ScorePlayersRequest",
    "ScorePlayersResponse",
]
