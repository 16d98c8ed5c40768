"""Roster legality checks."""

from .validator import (
    ValidationResult,
    is_valid,
    role_histogram,
    shape_of,
    suggest_fixes,
    team_histogram,
    total_credits,
    validate,
)

__all__ = [
    "ValidationResult",
    "is_valid",
    "role_histogram",
    "shape_of",
    "suggest_fixes",
    "team_histogram",
    "total_credits",
    "validate",
]
