"""Scored player model produced once per optimization request."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .player import Player, Role


class ScoredPlayer(BaseModel):
    """A player plus the derived signal vector. Never mutated after creation."""

    player: Player
    predicted_points: float = Field(..., ge=0.0, le=100.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    volatility: float = Field(..., ge=0.0, le=1.0)
    recent_form: float = Field(..., ge=0.0, le=1.0)
    consistency: float = Field(..., ge=0.0, le=1.0)
    versatility: float = Field(..., ge=0.0, le=1.0)
    injury_risk: float = Field(..., ge=1.0, le=10.0)
    venue_fit: float = Field(..., ge=0.0, le=1.0)
    pitch_fit: float = Field(..., ge=0.0, le=1.0)
    weather_fit: float = Field(..., ge=0.0, le=1.0)
    opposition_strength: float = Field(..., ge=0.0, le=1.0)
    head_to_head: float = Field(..., ge=0.0, le=1.0)
    captaincy: float = Field(..., ge=0.0, le=1.0)
    ownership: float = Field(..., ge=0.0, le=1.0)
    price_efficiency: float = Field(..., ge=0.0, le=1.0)
    upset_potential: float = Field(..., ge=0.0, le=1.0)
    performance_volatility: float = Field(..., ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)

    @property
    def player_id(self) -> str:
        return self.player.player_id

    @property
    def name(self) -> str:
        return self.player.name

    @property
    def role(self) -> Role:
        return self.player.role

    @property
    def team(self) -> str:
        return self.player.team

    @property
    def credits(self) -> float:
        return self.player.credits

    def attribute(self, name: str) -> float:
        """Return a numeric signal by name, falling back to raw player fields."""

        if name in type(self).model_fields and name != "player":
            return float(getattr(self, name))
        value = getattr(self.player, name, None)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise KeyError(f"Unknown numeric attribute {name!r}")
        return float(value)
