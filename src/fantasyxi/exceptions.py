"""Error types raised by the lineup engine."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence


class FantasyXIError(Exception):
    """Base exception for engine errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class InfeasiblePool(FantasyXIError):
    """Raised when the eligible pool cannot produce any legal lineup."""

    def __init__(self, roles: Iterable[str] = (), reason: Optional[str] = None):
        self.roles = tuple(str(role) for role in roles)
        if reason is None:
            if self.roles:
                reason = "Not enough eligible players for role(s): " + ", ".join(self.roles)
            else:
                reason = "Player pool cannot form a legal lineup"
        super().__init__(
            reason,
            error_code="INFEASIBLE_POOL",
            details={"roles": list(self.roles)},
        )


class ValidatorRejection(FantasyXIError):
    """Raised when a candidate lineup breaks a hard roster rule."""

    def __init__(self, violations: Sequence[str]):
        self.violations = tuple(violations)
        super().__init__(
            "; ".join(self.violations) or "Lineup rejected",
            error_code="VALIDATOR_REJECTION",
            details={"violations": list(self.violations)},
        )


class FilterExhaustion(FantasyXIError):
    """Raised when statistical filters leave too few players to build a lineup."""

    def __init__(self, remaining: int, required: int):
        self.remaining = remaining
        self.required = required
        super().__init__(
            f"Filters left {remaining} players, need at least {required}",
            error_code="FILTER_EXHAUSTION",
            details={"remaining": remaining, "required": required},
        )


__all__ = [
    "FantasyXIError",
    "InfeasiblePool",
    "ValidatorRejection",
    "FilterExhaustion",
]
