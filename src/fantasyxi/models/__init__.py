"""Data models shared across scoring, optimizer and API layers."""

from .lineup import Lineup, LineupPlayer
from .player import ADVANCED_ATTRIBUTES, ROLE_ORDER, MatchContext, Player, Role
from .scored import ScoredPlayer

__all__ = [
    "ADVANCED_ATTRIBUTES",
    "ROLE_ORDER",
    "Lineup",
    "LineupPlayer",
    "MatchContext",
    "Player",
    "Role",
    "ScoredPlayer",
]
