"""Canonical player and match models shared by scoring and optimizer layers."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class Role(str, Enum):
    KEEPER = "WK"
    BATTER = "BAT"
    ALL_ROUNDER = "AR"
    BOWLER = "BWL"

    @property
    def display_name(self) -> str:
        return _ROLE_DISPLAY[self]

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Map free-form role labels onto the four roster roles.

        Unknown or empty labels count as batters.
        """

        if isinstance(value, Role):
            return value
        if not value:
            return cls.BATTER
        text = str(value).strip().upper()
        for role in cls:
            if text == role.value:
                return role
        if "WK" in text or "WICKET" in text or "KEEPER" in text:
            return cls.KEEPER
        if "ALL" in text or text in {"AR", "A/R"}:
            return cls.ALL_ROUNDER
        if "BWL" in text or "BOWL" in text or "SPIN" in text or "PACE" in text:
            return cls.BOWLER
        return cls.BATTER


_ROLE_DISPLAY = {
    Role.KEEPER: "Wicket-Keeper(s)",
    Role.BATTER: "Batter(s)",
    Role.ALL_ROUNDER: "All-Rounder(s)",
    Role.BOWLER: "Bowler(s)",
}

_ROLE_LABELS = {
    Role.KEEPER: "Keeper",
    Role.BATTER: "Batter",
    Role.ALL_ROUNDER: "AllRounder",
    Role.BOWLER: "Bowler",
}

ROLE_ORDER: tuple[Role, ...] = (Role.KEEPER, Role.BATTER, Role.ALL_ROUNDER, Role.BOWLER)

# Optional advanced attributes a caller may supply; anything left as None is
# derived by the scoring model.
ADVANCED_ATTRIBUTES: tuple[str, ...] = (
    "recent_form",
    "consistency",
    "versatility",
    "injury_risk",
    "venue_fit",
    "pitch_fit",
    "weather_fit",
    "opposition_strength",
    "head_to_head",
    "captaincy",
    "ownership",
    "price_efficiency",
    "upset_potential",
)


class Player(BaseModel):
    """Raw player payload supplied by the caller for one match."""

    player_id: str = Field(..., min_length=1)
    name: str
    team: str
    role: Role
    credits: float = Field(default=8.0, ge=0.0)
    points: float = Field(default=0.0, ge=0.0)
    selection_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    dream_team_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    eligible: bool = True
    country: Optional[str] = None

    recent_form: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    consistency: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    versatility: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    injury_risk: Optional[float] = Field(default=None, ge=1.0, le=10.0)
    venue_fit: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    pitch_fit: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    weather_fit: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    opposition_strength: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    head_to_head: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    captaincy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    ownership: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    price_efficiency: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    upset_potential: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Role:
        return Role.parse(value)


class MatchContext(BaseModel):
    """Match conditions used to derive venue, pitch, weather and opposition fit."""

    match_id: Optional[str] = None
    venue: str = ""
    pitch_type: Literal["batting", "bowling", "balanced"] = "balanced"
    weather: Literal["clear", "overcast", "rain", "hot", "cold"] = "clear"
    team1: str = ""
    team2: str = ""
    match_format: Literal["T20", "ODI", "Test"] = "T20"
    # player_id -> recent average fantasy points against this opponent
    head_to_head: Dict[str, float] = Field(default_factory=dict)
    team_strengths: Dict[str, float] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def opponent_of(self, team: str) -> str:
        return self.team2 if team == self.team1 else self.team1
