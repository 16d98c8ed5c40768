"""Command-line interface for generating lineups from a match slate file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from fantasyxi.config.roster import DEFAULT_RULES, get_rules
from fantasyxi.config.settings import RISK_PROFILES, OptimizerSettings
from fantasyxi.exceptions import InfeasiblePool
from fantasyxi.models.player import MatchContext, Player
from fantasyxi.optimizer import CaptainCombo, OptimizationRequest, build_lineups
from fantasyxi.pool import AttributeRange, export_lineups_to_csv


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate fantasy cricket lineups from a match slate")
    parser.add_argument("slate", type=Path, help='Path to slate JSON ({"context": {...}, "players": [...]})')
    parser.add_argument("--lineups", type=int, default=10, help="Number of lineups to build (1-50)")
    parser.add_argument("--risk", choices=RISK_PROFILES, default="balanced", help="Risk profile")
    parser.add_argument("--rules", default=DEFAULT_RULES, help="Roster rule set name")
    parser.add_argument("--output", type=Path, default=Path("lineups.csv"), help="Output CSV path")
    parser.add_argument(
        "--mode",
        choices=("auto", "plain", "core-hedge", "stat-filter", "preset", "role-split"),
        default="auto",
        help="Generation strategy (auto picks from the other options)",
    )
    parser.add_argument("--core", nargs="*", default=[], help="Player IDs to force into every lineup")
    parser.add_argument("--hedge", nargs="*", default=[], help="Player IDs rotated through part of the batch")
    parser.add_argument(
        "--hedge-percentage",
        type=float,
        default=50.0,
        help="Share of lineups each hedge player appears in (0-100)",
    )
    parser.add_argument("--differential", nargs="*", default=[], help="Player IDs for the first 1-2 lineups only")
    parser.add_argument("--exclude", nargs="*", default=[], help="Player IDs to remove from consideration")
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        help="Attribute range as name=min:max, either end optional (e.g. consistency=0.6:)",
    )
    parser.add_argument("--preset", default=None, help="Preset template id or alias")
    parser.add_argument("--role-shape", default=None, help="Role counts as WK-BAT-AR-BWL, e.g. 1-4-3-3")
    parser.add_argument(
        "--team-split",
        type=int,
        nargs=2,
        default=None,
        metavar=("TEAM1", "TEAM2"),
        help="Players from team 1 and team 2 in every lineup, e.g. 6 5",
    )
    parser.add_argument("--captain", default=None, help="Pinned captain player ID")
    parser.add_argument("--vice-captain", default=None, help="Pinned vice-captain player ID")
    parser.add_argument(
        "--captain-combo",
        action="append",
        default=[],
        help="Captain pair spread over a share of lineups as captain:vice_captain:percentage",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed for reproducible batches")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes for the batch")
    return parser.parse_args(argv)


def _parse_filters(entries: list[str]) -> dict[str, AttributeRange]:
    ranges: dict[str, AttributeRange] = {}
    for entry in entries:
        if "=" not in entry or ":" not in entry:
            raise ValueError(f"Invalid filter {entry!r}; expected name=min:max")
        name, bounds = entry.split("=", 1)
        low, high = bounds.split(":", 1)
        ranges[name.strip()] = AttributeRange(
            min=float(low) if low.strip() else None,
            max=float(high) if high.strip() else None,
        )
    return ranges


def _parse_combos(entries: list[str]) -> list[CaptainCombo]:
    combos: list[CaptainCombo] = []
    for entry in entries:
        parts = entry.split(":")
        if len(parts) != 3:
            raise ValueError(f"Invalid captain combo {entry!r}; expected captain:vice_captain:percentage")
        captain, vice, pct = (part.strip() for part in parts)
        combos.append(CaptainCombo(captain_id=captain, vice_captain_id=vice, percentage=float(pct)))
    return combos


def _load_slate(path: Path) -> tuple[MatchContext, list[Player]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    context = MatchContext.model_validate(data.get("context") or {})
    players = [Player.model_validate(item) for item in data.get("players", [])]
    return context, players


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    context, players = _load_slate(args.slate)

    request = OptimizationRequest(
        risk_profile=args.risk,
        lineup_count=args.lineups,
        mode=args.mode,
        core_player_ids=args.core,
        hedge_player_ids=args.hedge,
        hedge_percentage=args.hedge_percentage,
        differential_player_ids=args.differential,
        exclude_player_ids=args.exclude,
        filters=_parse_filters(args.filter),
        preset_id=args.preset,
        role_shape=args.role_shape,
        team_split=tuple(args.team_split) if args.team_split else None,
        captain_id=args.captain,
        vice_captain_id=args.vice_captain,
        captain_combos=_parse_combos(args.captain_combo),
        seed=args.seed,
        workers=args.workers,
    )

    try:
        output = build_lineups(
            players,
            context,
            request,
            constraints=get_rules(args.rules),
            settings=OptimizerSettings.from_env(),
        )
    except InfeasiblePool as exc:
        print(f"Cannot build lineups: {exc.message}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid options: {exc}", file=sys.stderr)
        return 2

    args.output.write_text(export_lineups_to_csv(output.lineups), encoding="utf-8")

    stats = output.stats
    print(f"Wrote {len(output.lineups)} lineups to {args.output}")
    print(
        "Captains: {} unique, pairs: {}, pool utilization: {:.1f}%, mean overlap: {:.2f}/11, fallbacks: {}".format(
            stats.unique_captains,
            stats.unique_pairs,
            stats.pool_utilization,
            stats.mean_overlap,
            stats.fallback_count,
        )
    )
    for failure in output.failures:
        print(f"Lineup {failure.index + 1} used {failure.recovery}: {failure.reason}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
