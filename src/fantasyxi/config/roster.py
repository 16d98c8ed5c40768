"""Roster rules (squad size, role quotas, credit cap, franchise cap)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Sequence, Tuple

from fantasyxi.models.player import ROLE_ORDER, Role


@dataclass(frozen=True)
class RoleBounds:
    min: int
    max: int

    def contains(self, count: int) -> bool:
        return self.min <= count <= self.max


@dataclass(frozen=True)
class RoleShape:
    """Role-count distribution of a lineup, e.g. 1-4-2-4 (WK-BAT-AR-BWL)."""

    WK: int
    BAT: int
    AR: int
    BWL: int

    @classmethod
    def from_mapping(cls, counts: Mapping) -> "RoleShape":
        values = {Role.parse(key).value: int(value) for key, value in counts.items()}
        return cls(**{role.value: values.get(role.value, 0) for role in ROLE_ORDER})

    @classmethod
    def parse(cls, label: str) -> "RoleShape":
        parts = [int(part) for part in label.strip().split("-")]
        if len(parts) != len(ROLE_ORDER):
            raise ValueError(f"Shape label must look like '1-4-2-4', got {label!r}")
        return cls(*parts)

    def count(self, role: Role) -> int:
        return getattr(self, Role.parse(role).value)

    @property
    def total(self) -> int:
        return self.WK + self.BAT + self.AR + self.BWL

    @property
    def label(self) -> str:
        return f"{self.WK}-{self.BAT}-{self.AR}-{self.BWL}"

    def as_dict(self) -> Dict[str, int]:
        return {role.value: self.count(role) for role in ROLE_ORDER}


@dataclass(frozen=True)
class RosterConstraints:
    name: str
    version: str
    squad_size: int
    role_bounds: Mapping[Role, RoleBounds]
    salary_cap: float
    max_per_team: int
    budget_warning_ratio: float = 0.95
    # Per-franchise overrides of max_per_team, as (team, cap) pairs.
    team_caps: Tuple[Tuple[str, int], ...] = ()

    def bounds(self, role: Role) -> RoleBounds:
        return self.role_bounds[Role.parse(role)]

    def legal_shapes(self) -> Tuple[RoleShape, ...]:
        """Every role distribution summing to the squad size inside the bounds."""

        key = tuple((self.bounds(role).min, self.bounds(role).max) for role in ROLE_ORDER)
        return _enumerate_shapes(self.squad_size, key)

    def is_legal_shape(self, shape: RoleShape) -> bool:
        if shape.total != self.squad_size:
            return False
        return all(self.bounds(role).contains(shape.count(role)) for role in ROLE_ORDER)

    def narrowed_to(self, shape: RoleShape) -> "RosterConstraints":
        """Copy of these rules with every role pinned to the given shape."""

        if not self.is_legal_shape(shape):
            raise ValueError(f"Shape {shape.label} is not legal under {self.name!r} rules")
        bounds = {role: RoleBounds(shape.count(role), shape.count(role)) for role in ROLE_ORDER}
        return replace(self, name=f"{self.name}:{shape.label}", role_bounds=bounds)

    def team_cap(self, team: str) -> int:
        for name, cap in self.team_caps:
            if name == team:
                return min(cap, self.max_per_team)
        return self.max_per_team

    def check_split(self, counts: Sequence[int]) -> None:
        """Raise ValueError unless the per-team counts can form a full squad."""

        if any(count < 0 or count > self.max_per_team for count in counts):
            raise ValueError(f"Team split {list(counts)} breaks the {self.max_per_team} per-team cap")
        if sum(counts) != self.squad_size:
            raise ValueError(f"Team split {list(counts)} must add up to {self.squad_size}")

    def split_between(self, teams: Sequence[str], counts: Sequence[int]) -> "RosterConstraints":
        """Copy of these rules capping each named franchise at its count."""

        if len(teams) != len(counts) or len(set(teams)) != len(teams):
            raise ValueError("Team split needs one count per distinct team")
        self.check_split(counts)
        split = "/".join(str(count) for count in counts)
        return replace(self, name=f"{self.name}:{split}", team_caps=tuple(zip(teams, counts)))


@lru_cache(maxsize=32)
def _enumerate_shapes(squad_size: int, bounds: Tuple[Tuple[int, int], ...]) -> Tuple[RoleShape, ...]:
    (wk_min, wk_max), (bat_min, bat_max), (ar_min, ar_max), (bwl_min, bwl_max) = bounds
    shapes = []
    for wk in range(wk_min, wk_max + 1):
        for bat in range(bat_min, bat_max + 1):
            for ar in range(ar_min, ar_max + 1):
                bwl = squad_size - wk - bat - ar
                if bwl_min <= bwl <= bwl_max:
                    shapes.append(RoleShape(wk, bat, ar, bwl))
    return tuple(shapes)


def _bounds(wk: Tuple[int, int], bat: Tuple[int, int], ar: Tuple[int, int], bwl: Tuple[int, int]) -> Mapping[Role, RoleBounds]:
    return {
        Role.KEEPER: RoleBounds(*wk),
        Role.BATTER: RoleBounds(*bat),
        Role.ALL_ROUNDER: RoleBounds(*ar),
        Role.BOWLER: RoleBounds(*bwl),
    }


_ROSTER_RULES: Dict[str, RosterConstraints] = {
    "classic": RosterConstraints(
        name="classic",
        version="1",
        squad_size=11,
        role_bounds=_bounds((1, 4), (3, 6), (1, 4), (3, 6)),
        salary_cap=100.0,
        max_per_team=7,
    ),
    "open": RosterConstraints(
        name="open",
        version="1",
        squad_size=11,
        role_bounds=_bounds((1, 8), (1, 8), (1, 8), (1, 8)),
        salary_cap=100.0,
        max_per_team=7,
    ),
}

DEFAULT_RULES = "classic"


# Curated shapes seen most often in winning fantasy cricket lineups.
COMMON_SHAPES: Tuple[Tuple[str, RoleShape], ...] = (
    ("balanced", RoleShape(1, 4, 2, 4)),
    ("all-rounder heavy", RoleShape(1, 3, 3, 4)),
    ("batting heavy", RoleShape(1, 5, 1, 4)),
    ("bowling heavy", RoleShape(1, 3, 2, 5)),
    ("dual keeper", RoleShape(2, 4, 1, 4)),
    ("bowling attack", RoleShape(1, 4, 1, 5)),
    ("all-rounder dominant", RoleShape(1, 2, 4, 4)),
    ("flexible keeper", RoleShape(2, 3, 2, 4)),
)


def common_shapes(constraints: RosterConstraints) -> Tuple[Tuple[str, RoleShape], ...]:
    """Curated shapes that are legal under the given rules."""

    return tuple((name, shape) for name, shape in COMMON_SHAPES if constraints.is_legal_shape(shape))


def iter_rules() -> Iterable[RosterConstraints]:
    """Return an iterator of all configured rule sets."""

    return _ROSTER_RULES.values()


def get_rules(name: str = DEFAULT_RULES) -> RosterConstraints:
    """Fetch rules by name, raising KeyError if missing."""

    key = name.strip().lower()
    if key not in _ROSTER_RULES:
        raise KeyError(f"No roster rules configured for {name!r}")
    return _ROSTER_RULES[key]
