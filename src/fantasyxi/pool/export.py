"""CSV export helpers for generated lineups."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Sequence

from fantasyxi.models.lineup import Lineup, LineupPlayer
from fantasyxi.models.player import ROLE_ORDER


class LineupExportError(RuntimeError):
    """Raised when lineups cannot be written in a single CSV layout."""


_SUMMARY_HEADERS: tuple[str, ...] = (
    "EntryName",
    "Captain",
    "ViceCaptain",
    "Credits",
    "ExpectedPoints",
    "Shape",
    "Strategy",
    "Fallback",
)


def _slot_order(lineup: Lineup) -> list[LineupPlayer]:
    rank = {role: position for position, role in enumerate(ROLE_ORDER)}
    return sorted(lineup.players, key=lambda player: (rank[player.role], player.player_id))


def _shape_label(lineup: Lineup) -> str:
    return "-".join(str(lineup.role_counts.get(role.value, 0)) for role in ROLE_ORDER)


def export_lineups_to_csv(
    lineups: Sequence[Lineup],
    *,
    entry_names: Sequence[str] | None = None,
) -> str:
    """One row per lineup: leaders, totals, then player ids in role order."""

    if entry_names is not None and len(entry_names) != len(lineups):
        raise LineupExportError("entry_names length must match lineups length")

    sizes = {len(lineup.players) for lineup in lineups}
    if len(sizes) > 1:
        raise LineupExportError(f"Lineups have mixed sizes: {sorted(sizes)}")
    squad_size = sizes.pop() if sizes else 11

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow((*_SUMMARY_HEADERS, *(f"P{slot}" for slot in range(1, squad_size + 1))))

    for idx, lineup in enumerate(lineups):
        entry_name = entry_names[idx] if entry_names is not None else lineup.lineup_id
        row = [
            entry_name,
            lineup.captain_id,
            lineup.vice_captain_id,
            f"{lineup.total_credits:g}",
            f"{lineup.expected_points:.2f}",
            _shape_label(lineup),
            lineup.strategy,
            "yes" if lineup.is_fallback else "no",
        ]
        row.extend(player.player_id for player in _slot_order(lineup))
        writer.writerow(row)

    return buffer.getvalue()


__all__ = [
    "LineupExportError",
    "export_lineups_to_csv",
]
