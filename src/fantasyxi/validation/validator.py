"""Roster legality checks shared by the optimizer and the final output gate."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Protocol, Sequence, Tuple

from fantasyxi.config.roster import RoleShape, RosterConstraints
from fantasyxi.models.player import ROLE_ORDER, Role


class RosterMember(Protocol):
    player_id: str
    role: Role
    team: str
    credits: float


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    violations: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = field(default_factory=tuple)


def role_histogram(players: Iterable[RosterMember]) -> Dict[Role, int]:
    counts: Dict[Role, int] = {role: 0 for role in ROLE_ORDER}
    for player in players:
        counts[Role.parse(player.role)] += 1
    return counts


def team_histogram(players: Iterable[RosterMember]) -> Dict[str, int]:
    return dict(Counter(player.team or "Unknown" for player in players))


def shape_of(players: Iterable[RosterMember]) -> RoleShape:
    return RoleShape.from_mapping(role_histogram(players))


def total_credits(players: Iterable[RosterMember]) -> float:
    return float(sum(player.credits for player in players))


def validate(players: Sequence[RosterMember], constraints: RosterConstraints) -> ValidationResult:
    """Check a candidate lineup against the roster rules."""

    violations: List[str] = []
    warnings: List[str] = []

    if len(players) != constraints.squad_size:
        violations.append(
            f"Lineup must have exactly {constraints.squad_size} players (currently has {len(players)})"
        )

    ids = [player.player_id for player in players]
    duplicates = sorted(pid for pid, count in Counter(ids).items() if count > 1)
    if duplicates:
        violations.append("Duplicate players: " + ", ".join(duplicates))

    for role, count in role_histogram(players).items():
        bounds = constraints.bounds(role)
        if count < bounds.min:
            violations.append(f"Must have at least {bounds.min} {role.display_name} (currently has {count})")
        if count > bounds.max:
            violations.append(f"Cannot have more than {bounds.max} {role.display_name} (currently has {count})")

    credits = total_credits(players)
    if credits > constraints.salary_cap + 1e-9:
        violations.append(f"Total credits ({credits:g}) cannot exceed {constraints.salary_cap:g}")
    elif credits > constraints.salary_cap * constraints.budget_warning_ratio:
        warnings.append(
            f"High credit usage ({credits:g}/{constraints.salary_cap:g}) - consider budget players"
        )

    for team, count in sorted(team_histogram(players).items(), key=lambda item: -item[1]):
        cap = constraints.team_cap(team)
        if count > cap:
            violations.append(f"Cannot select more than {cap} players from one team ({team}: {count})")

    return ValidationResult(ok=not violations, violations=tuple(violations), warnings=tuple(warnings))


def is_valid(players: Sequence[RosterMember], constraints: RosterConstraints) -> bool:
    return validate(players, constraints).ok


def suggest_fixes(shape: RoleShape, constraints: RosterConstraints) -> List[str]:
    """Human-readable hints for turning an illegal shape into a legal one."""

    suggestions: List[str] = []
    if shape.total < constraints.squad_size:
        suggestions.append(f"Add {constraints.squad_size - shape.total} more players")
    elif shape.total > constraints.squad_size:
        suggestions.append(f"Remove {shape.total - constraints.squad_size} players")

    for role in ROLE_ORDER:
        count = shape.count(role)
        bounds = constraints.bounds(role)
        if count < bounds.min:
            suggestions.append(f"Add {bounds.min - count} more {role.display_name}")
        elif count > bounds.max:
            suggestions.append(f"Remove {count - bounds.max} {role.display_name}")
    return suggestions
